"""Register file, call stack and 60Hz timers"""

from typing import List

from .constants import NUM_REGISTERS, PROGRAM_START, STACK_SIZE
from .errors import StackOverflow, StackUnderflow


class RegisterFile:
    """V0-VF, I and PC with exact-width stores"""

    def __init__(self):
        self.V = bytearray(NUM_REGISTERS)
        self._I = 0
        self._PC = PROGRAM_START

    def __getitem__(self, index: int) -> int:
        return self.V[index]

    def __setitem__(self, index: int, value: int):
        self.V[index] = value & 0xFF

    @property
    def I(self) -> int:
        return self._I

    @I.setter
    def I(self, value: int):
        self._I = value & 0xFFFF

    @property
    def PC(self) -> int:
        return self._PC

    @PC.setter
    def PC(self, value: int):
        self._PC = value & 0xFFFF

    def __repr__(self):
        regs = " ".join(f"{v:02X}" for v in self.V)
        return f"RegisterFile(PC=${self._PC:03X}, I=${self._I:03X}, V=[{regs}])"


class CallStack:
    """Return-address stack with a fixed depth"""

    def __init__(self, capacity: int = STACK_SIZE):
        self.capacity = capacity
        self.addresses: List[int] = []

    def __len__(self):
        return len(self.addresses)

    def push(self, address: int):
        if len(self.addresses) >= self.capacity:
            raise StackOverflow(len(self.addresses) + 1)
        self.addresses.append(address)

    def pop(self) -> int:
        if not self.addresses:
            raise StackUnderflow()
        return self.addresses.pop()

    def __repr__(self):
        return f"CallStack({', '.join(f'${a:03X}' for a in self.addresses)})"


class Timer:
    """8-bit countdown decremented at 60Hz, saturating at zero"""

    def __init__(self, value: int = 0):
        self.value = value & 0xFF

    def set(self, value: int):
        self.value = value & 0xFF

    def tick(self):
        if self.value > 0:
            self.value -= 1

    @property
    def active(self) -> bool:
        return self.value > 0

    def __repr__(self):
        return f"Timer({self.value})"
