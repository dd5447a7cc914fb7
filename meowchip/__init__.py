"""Cat's CHIP-8 interpreter core"""

from .config import EmulatorConfig, Quirks
from .cpu import Chip8CPU, MachineState, RunState, Snapshot
from .errors import (
    Chip8Error, InvalidOpcode, OutOfBounds, RomTooLarge, StackOverflow,
    StackUnderflow,
)
from .instruction import Instruction, Op, decode, disassemble

__version__ = "0.1.0"
