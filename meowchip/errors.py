"""Faults raised by the CHIP-8 core

Every fault is fatal for the running program: the interpreter halts and keeps
raising the same error until it is reset. Each error keeps its constructor
arguments in `args` so halted states can be copied into snapshots.
"""


class Chip8Error(Exception):
    """Base class for every interpreter fault"""


class RomTooLarge(Chip8Error):
    """ROM does not fit between 0x200 and the end of memory"""

    def __init__(self, size: int, limit: int):
        super().__init__(size, limit)
        self.size = size
        self.limit = limit

    def __str__(self):
        return f"ROM is {self.size} bytes, at most {self.limit} fit in memory"


class InvalidOpcode(Chip8Error):
    """Instruction word matches no CHIP-8 opcode"""

    def __init__(self, opcode: int, pc: int):
        super().__init__(opcode, pc)
        self.opcode = opcode
        self.pc = pc

    def __str__(self):
        return f"Invalid opcode ${self.opcode:04X} at ${self.pc:03X}"


class StackOverflow(Chip8Error):
    """CALL nested deeper than the stack allows"""

    def __init__(self, depth: int):
        super().__init__(depth)
        self.depth = depth

    def __str__(self):
        return f"Call stack overflow (depth {self.depth})"


class StackUnderflow(Chip8Error):
    """RET with nothing on the stack"""

    def __str__(self):
        return "Return with an empty call stack"


class OutOfBounds(Chip8Error):
    """Memory access outside the 4KB address space"""

    def __init__(self, address: int):
        super().__init__(address)
        self.address = address

    def __str__(self):
        return f"Memory access out of bounds: ${self.address:X}"
