"""Tests for registers, call stack and timers."""

import pytest

from meowchip.errors import StackOverflow, StackUnderflow
from meowchip.registers import CallStack, RegisterFile, Timer


class TestRegisterFile:

    def test_initial_values(self):
        regs = RegisterFile()
        assert regs.PC == 0x200
        assert regs.I == 0
        assert list(regs.V) == [0] * 16

    def test_store_wraps_mod_256(self):
        regs = RegisterFile()
        regs[3] = 260
        assert regs[3] == 4
        regs[3] = -5
        assert regs[3] == 251

    def test_index_is_16_bit(self):
        regs = RegisterFile()
        regs.I = 0x1FFFF
        assert regs.I == 0xFFFF


class TestCallStack:

    def test_lifo(self):
        stack = CallStack()
        stack.push(0x202)
        stack.push(0x304)
        assert stack.pop() == 0x304
        assert stack.pop() == 0x202
        assert len(stack) == 0

    def test_sixteen_fit(self):
        stack = CallStack()
        for i in range(16):
            stack.push(0x200 + 2 * i)
        assert len(stack) == 16

    def test_seventeenth_overflows(self):
        stack = CallStack()
        for i in range(16):
            stack.push(0x200)
        with pytest.raises(StackOverflow):
            stack.push(0x200)
        assert len(stack) == 16

    def test_pop_empty_underflows(self):
        with pytest.raises(StackUnderflow):
            CallStack().pop()


class TestTimer:

    def test_counts_down_to_zero_and_stays(self):
        timer = Timer()
        timer.set(5)
        for _ in range(5):
            timer.tick()
        assert timer.value == 0
        timer.tick()
        timer.tick()
        assert timer.value == 0

    def test_active(self):
        timer = Timer(1)
        assert timer.active
        timer.tick()
        assert not timer.active

    def test_set_truncates(self):
        timer = Timer()
        timer.set(0x1FF)
        assert timer.value == 0xFF
