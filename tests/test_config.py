import argparse

import pytest

from meowchip.config import COLORS, EmulatorConfig, Quirks


def make_args(**overrides):
    values = dict(hz=500, scale=12, color="green", quirks="chip8", debug=False)
    values.update(overrides)
    return argparse.Namespace(**values)


class TestQuirks:

    def test_default_is_cosmac_vip(self):
        q = Quirks()
        assert q.vf_reset and q.shift_uses_vy and q.load_store_increment
        assert not q.jump_uses_vx and not q.index_overflow
        assert Quirks.chip8() == q

    def test_modern(self):
        q = Quirks.preset("modern")
        assert not q.vf_reset and not q.shift_uses_vy and not q.load_store_increment
        assert q.jump_uses_vx and q.index_overflow

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            Quirks.preset("xo-chip")


class TestEmulatorConfig:

    @pytest.mark.parametrize("hz, cycles", [(500, 8), (1000, 16), (60, 1), (10, 1)])
    def test_cycles_per_frame(self, hz, cycles):
        assert EmulatorConfig(clock_hz=hz).cycles_per_frame == cycles

    def test_from_args(self, monkeypatch):
        monkeypatch.delenv("CHIP8_DEBUG", raising=False)
        config = EmulatorConfig.from_args(make_args(hz=1000, color="amber", quirks="modern"))
        assert config.clock_hz == 1000
        assert config.fg_color == COLORS["fg_amber"]
        assert config.quirks == Quirks.modern()
        assert config.debug is False

    def test_debug_from_environment(self, monkeypatch):
        monkeypatch.setenv("CHIP8_DEBUG", "1")
        assert EmulatorConfig.from_args(make_args()).debug is True

    def test_rejects_non_positive_speed(self):
        with pytest.raises(ValueError):
            EmulatorConfig.from_args(make_args(hz=0))
