"""CHIP-8 interpreter core"""

import copy
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import numpy as np

from .config import Quirks
from .constants import (
    ADDRESS_MASK, FLAG_REGISTER, INSTRUCTION_SIZE, MAX_ROM_SIZE, MEMORY_SIZE,
)
from .display import DisplayBuffer
from .errors import Chip8Error, RomTooLarge
from .instruction import Instruction, Op, decode
from .keypad import Keypad
from .memory import Memory
from .registers import CallStack, RegisterFile, Timer

logger = logging.getLogger(__name__)


class RunState(Enum):
    RUNNING = "running"
    WAITING_FOR_KEY = "waiting_for_key"
    HALTED = "halted"


@dataclass
class MachineState:
    """Everything the interpreter mutates, replaced as a whole on reset"""
    memory: Memory = field(default_factory=Memory)
    regs: RegisterFile = field(default_factory=RegisterFile)
    stack: CallStack = field(default_factory=CallStack)

    # Timers (60Hz)
    delay_timer: Timer = field(default_factory=Timer)
    sound_timer: Timer = field(default_factory=Timer)

    display: DisplayBuffer = field(default_factory=DisplayBuffer)
    keypad: Keypad = field(default_factory=Keypad)

    run_state: RunState = RunState.RUNNING
    key_register: int = 0                   # target of a pending FX0A
    error: Optional[Chip8Error] = None      # set once HALTED


@dataclass(frozen=True)
class Snapshot:
    """In-memory copy of a MachineState"""
    state: MachineState


class Chip8CPU:
    """
    CHIP-8 interpreter

    The host drives two cadences against one instance, never concurrently:
    step() for instructions and update_timers() at 60Hz. run_frame() does
    both for one video frame.
    """

    def __init__(self, quirks: Optional[Quirks] = None, rng: Optional[random.Random] = None):
        self.quirks = quirks or Quirks()
        self.rng = rng or random.Random()
        self.state = MachineState()
        self.draw_flag = False

    def __str__(self):
        s = self.state
        return (
            f"STATE:{s.run_state.value} | {s.regs!r}\n"
            f"{s.stack!r} | DT:{s.delay_timer.value} ST:{s.sound_timer.value} | {s.keypad!r}"
        )

    # ─── Lifecycle ───

    def reset(self):
        """Reset CPU to initial state"""
        self.state = MachineState()
        self.draw_flag = True
        logger.debug("Interpreter reset")

    def load_rom(self, data: bytes):
        """Reset, then load ROM data at 0x200"""
        if len(data) > MAX_ROM_SIZE:
            raise RomTooLarge(len(data), MAX_ROM_SIZE)
        self.reset()
        self.state.memory.load_rom(bytes(data))

    def load_rom_file(self, filepath: Union[str, Path]):
        """Load ROM from file"""
        data = Path(filepath).read_bytes()
        logger.debug("Read %d bytes from %s", len(data), filepath)
        self.load_rom(data)

    def snapshot(self) -> Snapshot:
        return Snapshot(copy.deepcopy(self.state))

    def restore(self, snapshot: Snapshot):
        """Bring back a saved machine; the live keypad belongs to the host and is kept"""
        keypad = self.state.keypad
        self.state = copy.deepcopy(snapshot.state)
        self.state.keypad = keypad
        if self.state.run_state is RunState.WAITING_FOR_KEY:
            keypad.begin_wait()
        self.draw_flag = True
        logger.debug("Restored snapshot at PC $%03X", self.state.regs.PC)

    # ─── Collaborator interface ───

    @property
    def memory(self) -> Memory:
        return self.state.memory

    @property
    def regs(self) -> RegisterFile:
        return self.state.regs

    @property
    def display(self) -> DisplayBuffer:
        return self.state.display

    @property
    def keypad(self) -> Keypad:
        return self.state.keypad

    @property
    def run_state(self) -> RunState:
        return self.state.run_state

    @property
    def halted(self) -> bool:
        return self.state.run_state is RunState.HALTED

    @property
    def waiting_for_key(self) -> bool:
        return self.state.run_state is RunState.WAITING_FOR_KEY

    @property
    def error(self) -> Optional[Chip8Error]:
        return self.state.error

    @property
    def sound_active(self) -> bool:
        return self.state.sound_timer.active

    @property
    def framebuffer(self) -> np.ndarray:
        return self.state.display.as_bool()

    def key_down(self, key: int):
        """Handle key press"""
        self.state.keypad.press(key)

    def key_up(self, key: int):
        """Handle key release"""
        self.state.keypad.release(key)

    def update_timers(self):
        """Decrement timers (call at 60Hz)"""
        self.state.delay_timer.tick()
        self.state.sound_timer.tick()

    # ─── Execution ───

    def peek_opcode(self) -> Optional[int]:
        """Word at PC, or None when PC points past the end of memory"""
        pc = self.state.regs.PC
        if pc > MEMORY_SIZE - INSTRUCTION_SIZE:
            return None
        return self.state.memory.read(pc) << 8 | self.state.memory.read(pc + 1)

    def peek_instruction(self) -> Instruction:
        """Decode the instruction at PC without executing it"""
        return decode(self.fetch(), self.state.regs.PC)

    def fetch(self) -> int:
        """Fetch the 16-bit big-endian opcode at PC"""
        pc = self.state.regs.PC
        hi = self.state.memory.read(pc)
        lo = self.state.memory.read(pc + 1)
        return (hi << 8) | lo

    def step(self) -> RunState:
        """
        Execute one instruction, or poll the keypad while waiting for a key

        Raises:
            Chip8Error: the interpreter faulted on this step or an earlier
                one; it stays halted until reset()
        """
        s = self.state
        if s.run_state is RunState.HALTED:
            raise s.error.with_traceback(None)

        if s.run_state is RunState.WAITING_FOR_KEY:
            key = s.keypad.newly_pressed()
            if key is not None:
                s.keypad.end_wait()
                s.regs[s.key_register] = key
                s.regs.PC += INSTRUCTION_SIZE
                s.run_state = RunState.RUNNING
                logger.debug("Key %X stored in V%X, resuming", key, s.key_register)
            return s.run_state

        pc = s.regs.PC
        try:
            instruction = decode(self.fetch(), pc)
            logger.debug("$%03X  %04X  %s", pc, instruction.raw, instruction)
            self.execute(instruction)
        except Chip8Error as e:
            s.run_state = RunState.HALTED
            s.error = e
            logger.error("Interpreter halted at $%03X: %s", pc, e)
            raise
        return s.run_state

    def run_frame(self, cycles: int) -> RunState:
        """Run `cycles` steps then one timer tick, i.e. one 60Hz frame"""
        for _ in range(cycles):
            self.step()
        self.update_timers()
        return self.state.run_state

    def execute(self, ins: Instruction):
        """Apply a decoded instruction; PC moves only if nothing raises"""
        s = self.state
        V = s.regs
        x, y, n, nn, nnn = ins.x, ins.y, ins.n, ins.nn, ins.nnn
        op = ins.op
        pc = V.PC
        next_pc = pc + INSTRUCTION_SIZE
        skip = pc + 2 * INSTRUCTION_SIZE

        # ─── 0XXX ───
        if op is Op.CLS:
            s.display.clear()
            self.draw_flag = True

        elif op is Op.RET:
            next_pc = s.stack.pop()

        elif op is Op.SYS:
            pass    # machine code routine, ignored

        # ─── Flow control ───
        elif op is Op.JP:
            next_pc = nnn

        elif op is Op.CALL:
            s.stack.push(next_pc)
            next_pc = nnn

        elif op is Op.SE_BYTE:
            if V[x] == nn:
                next_pc = skip

        elif op is Op.SNE_BYTE:
            if V[x] != nn:
                next_pc = skip

        elif op is Op.SE_REG:
            if V[x] == V[y]:
                next_pc = skip

        elif op is Op.SNE_REG:
            if V[x] != V[y]:
                next_pc = skip

        elif op is Op.JP_V0:
            offset = V[x] if self.quirks.jump_uses_vx else V[0]
            next_pc = nnn + offset

        # ─── Immediates ───
        elif op is Op.LD_BYTE:
            V[x] = nn

        elif op is Op.ADD_BYTE:
            V[x] = V[x] + nn

        elif op is Op.RND:
            V[x] = self.rng.randint(0, 255) & nn

        # ─── 8XYZ: ALU operations ───
        elif op is Op.LD_REG:
            V[x] = V[y]

        elif op in (Op.OR, Op.AND, Op.XOR):
            if op is Op.OR:
                V[x] = V[x] | V[y]
            elif op is Op.AND:
                V[x] = V[x] & V[y]
            else:
                V[x] = V[x] ^ V[y]
            if self.quirks.vf_reset:
                V[FLAG_REGISTER] = 0

        elif op is Op.ADD_REG:
            result = V[x] + V[y]
            V[x] = result
            V[FLAG_REGISTER] = 1 if result > 0xFF else 0

        elif op is Op.SUB:
            no_borrow = 1 if V[x] >= V[y] else 0
            V[x] = V[x] - V[y]
            V[FLAG_REGISTER] = no_borrow

        elif op is Op.SUBN:
            no_borrow = 1 if V[y] >= V[x] else 0
            V[x] = V[y] - V[x]
            V[FLAG_REGISTER] = no_borrow

        elif op is Op.SHR:
            src = V[y] if self.quirks.shift_uses_vy else V[x]
            V[x] = src >> 1
            V[FLAG_REGISTER] = src & 0x1

        elif op is Op.SHL:
            src = V[y] if self.quirks.shift_uses_vy else V[x]
            V[x] = src << 1
            V[FLAG_REGISTER] = (src >> 7) & 0x1

        # ─── Index register / memory ───
        elif op is Op.LD_I:
            V.I = nnn

        elif op is Op.ADD_I:
            total = V.I + V[x]
            V.I = total
            if self.quirks.index_overflow:
                V[FLAG_REGISTER] = 1 if total > ADDRESS_MASK else 0

        elif op is Op.LD_F:
            V.I = s.memory.font_address(V[x])

        elif op is Op.LD_B:
            value = V[x]
            s.memory.write_block(V.I & ADDRESS_MASK, (value // 100, (value // 10) % 10, value % 10))

        elif op is Op.LD_MEM_VX:
            s.memory.write_block(V.I & ADDRESS_MASK, V.V[:x + 1])
            if self.quirks.load_store_increment:
                V.I += x + 1

        elif op is Op.LD_VX_MEM:
            values = s.memory.read_block(V.I & ADDRESS_MASK, x + 1)
            for i, value in enumerate(values):
                V[i] = value
            if self.quirks.load_store_increment:
                V.I += x + 1

        # ─── DXYN: DRW Vx, Vy, nibble ───
        elif op is Op.DRW:
            rows = s.memory.read_block(V.I & ADDRESS_MASK, n)
            collision = s.display.draw_sprite(V[x], V[y], rows)
            V[FLAG_REGISTER] = 1 if collision else 0
            self.draw_flag = True

        # ─── Keypad ───
        elif op is Op.SKP:
            if s.keypad.is_pressed(V[x]):
                next_pc = skip

        elif op is Op.SKNP:
            if not s.keypad.is_pressed(V[x]):
                next_pc = skip

        elif op is Op.LD_VX_K:
            s.keypad.begin_wait()
            s.key_register = x
            s.run_state = RunState.WAITING_FOR_KEY
            next_pc = pc    # advanced once a key arrives
            logger.debug("Waiting for a key into V%X", x)

        # ─── Timers ───
        elif op is Op.LD_VX_DT:
            V[x] = s.delay_timer.value

        elif op is Op.LD_DT_VX:
            s.delay_timer.set(V[x])

        elif op is Op.LD_ST_VX:
            s.sound_timer.set(V[x])

        V.PC = next_pc
