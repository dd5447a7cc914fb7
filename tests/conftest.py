import random

import pytest

from meowchip import Chip8CPU


def rom(*words: int) -> bytes:
    """Assemble 16-bit words into a big-endian ROM image"""
    return b"".join(w.to_bytes(2, "big") for w in words)


@pytest.fixture
def cpu():
    return Chip8CPU(rng=random.Random(0xC8))


@pytest.fixture
def run(cpu):
    """Load the given words as a ROM and step once per word (or `steps` times)"""
    def _run(*words, steps=None):
        cpu.load_rom(rom(*words))
        for _ in range(len(words) if steps is None else steps):
            cpu.step()
        return cpu
    return _run
