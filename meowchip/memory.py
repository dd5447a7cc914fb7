"""4KB CHIP-8 main memory"""

import logging

from .constants import (
    FONT_ADDRESS, FONT_SPRITE_SIZE, FONTSET, MAX_ROM_SIZE, MEMORY_SIZE,
    PROGRAM_START,
)
from .errors import OutOfBounds, RomTooLarge

logger = logging.getLogger(__name__)


class Memory:
    """Bounds-checked byte array with the font preloaded at FONT_ADDRESS"""

    def __init__(self):
        self.data = bytearray(MEMORY_SIZE)
        self._load_fontset()

    def _load_fontset(self):
        """Load built-in font sprites to memory"""
        self.data[FONT_ADDRESS:FONT_ADDRESS + len(FONTSET)] = bytes(FONTSET)

    @staticmethod
    def _check(address: int, length: int = 1):
        if address < 0:
            raise OutOfBounds(address)
        if address + length > MEMORY_SIZE:
            raise OutOfBounds(max(address, MEMORY_SIZE))

    def __len__(self):
        return MEMORY_SIZE

    def __getitem__(self, address: int) -> int:
        return self.read(address)

    def __setitem__(self, address: int, value: int):
        self.write(address, value)

    def read(self, address: int) -> int:
        self._check(address)
        return self.data[address]

    def write(self, address: int, value: int):
        self._check(address)
        self.data[address] = value & 0xFF

    def read_block(self, address: int, length: int) -> bytes:
        """Read `length` consecutive bytes starting at `address`"""
        self._check(address, length)
        return bytes(self.data[address:address + length])

    def write_block(self, address: int, values) -> None:
        """Write a run of bytes starting at `address`, all or nothing"""
        values = bytes(v & 0xFF for v in values)
        self._check(address, len(values))
        self.data[address:address + len(values)] = values

    def load_rom(self, rom: bytes):
        """Copy a ROM image to PROGRAM_START, leaving the rest of memory as is"""
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLarge(len(rom), MAX_ROM_SIZE)
        self.data[PROGRAM_START:PROGRAM_START + len(rom)] = rom
        logger.debug("Loaded %d byte ROM at $%03X", len(rom), PROGRAM_START)

    @staticmethod
    def font_address(digit: int) -> int:
        """Address of the 5-byte glyph for a hex digit (low nibble only)"""
        return FONT_ADDRESS + (digit & 0xF) * FONT_SPRITE_SIZE
