"""Interpreter quirks and front-end settings"""

import os
from dataclasses import dataclass, field
from typing import Tuple

from .constants import DEFAULT_CLOCK_HZ, TIMER_HZ

# Colors (RGB)
COLORS = {
    'bg_dark': (15, 15, 25),
    'fg_green': (0, 255, 128),
    'fg_amber': (255, 176, 0),
    'fg_white': (220, 220, 220),
    'fg_blue': (100, 180, 255),
}


@dataclass
class Quirks:
    """
    Behaviours that differ between CHIP-8 interpreters

    The defaults are the original COSMAC VIP ones, which is what the
    Timendus quirks test expects for plain CHIP-8.
    """
    vf_reset: bool = True               # 8XY1/2/3 clear VF
    shift_uses_vy: bool = True          # 8XY6/E shift VY into VX
    load_store_increment: bool = True   # FX55/65 leave I past the last register
    jump_uses_vx: bool = False          # BNNN jumps to XNN + VX instead of NNN + V0
    index_overflow: bool = False        # FX1E sets VF when I passes 0xFFF

    @classmethod
    def chip8(cls) -> 'Quirks':
        return cls()

    @classmethod
    def modern(cls) -> 'Quirks':
        """CHIP-48 / SCHIP conventions most post-1990 ROMs are written for"""
        return cls(
            vf_reset=False,
            shift_uses_vy=False,
            load_store_increment=False,
            jump_uses_vx=True,
            index_overflow=True,
        )

    @classmethod
    def preset(cls, name: str) -> 'Quirks':
        presets = {'chip8': cls.chip8, 'modern': cls.modern}
        try:
            return presets[name]()
        except KeyError:
            raise ValueError(f"Unknown quirks preset {name!r}, expected one of {sorted(presets)}") from None


def _env_flag(name: str) -> bool:
    return os.getenv(name, '0').strip().lower() not in ('', '0', 'false', 'no')


@dataclass
class EmulatorConfig:
    """Settings for the pygame host"""
    clock_hz: int = DEFAULT_CLOCK_HZ
    scale: int = 12
    fg_color: Tuple[int, int, int] = COLORS['fg_green']
    bg_color: Tuple[int, int, int] = COLORS['bg_dark']
    tone_hz: int = 440
    quirks: Quirks = field(default_factory=Quirks)
    debug: bool = False

    @property
    def cycles_per_frame(self) -> int:
        return max(1, self.clock_hz // TIMER_HZ)

    @classmethod
    def from_args(cls, args) -> 'EmulatorConfig':
        """Build a config from the CLI's argparse namespace"""
        if args.hz <= 0:
            raise ValueError("--hz must be positive")
        if args.scale <= 0:
            raise ValueError("--scale must be positive")
        return cls(
            clock_hz=args.hz,
            scale=args.scale,
            fg_color=COLORS[f"fg_{args.color}"],
            quirks=Quirks.preset(args.quirks),
            debug=args.debug or _env_flag('CHIP8_DEBUG'),
        )
