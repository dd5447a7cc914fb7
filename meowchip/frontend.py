"""pygame host: window, keyboard, tone and the 60Hz frame loop"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame

from .config import COLORS, EmulatorConfig
from .constants import DISPLAY_H, DISPLAY_W, TIMER_HZ
from .cpu import Chip8CPU, Snapshot
from .errors import Chip8Error
from .instruction import disassemble

logger = logging.getLogger(__name__)

GLOW_UPSCALE = 4                        # Internal upscale for glow blur
BLOOM_STRENGTH = 0.55                   # Glow intensity (0.0-1.0)
BLUR_RADIUS = 1                         # Box blur passes (0-3)
SAMPLE_RATE = 44100

# Keyboard mapping (QWERTY -> CHIP-8 hex keypad)
# CHIP-8 Keypad:    Keyboard:
# 1 2 3 C          1 2 3 4
# 4 5 6 D          Q W E R
# 7 8 9 E          A S D F
# A 0 B F          Z X C V
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


# ═══════════════════════════════════════════════════════════════════════════════
# RENDERING
# ═══════════════════════════════════════════════════════════════════════════════

def frame_to_rgb(pixels: np.ndarray, fg: Tuple[int, int, int], bg: Tuple[int, int, int]) -> np.ndarray:
    """
    Colorize a (height, width) 0/1 framebuffer

    Returns:
        uint8 array of shape (width, height, 3), the layout pygame.surfarray expects
    """
    lit = pixels.astype(bool).T[:, :, np.newaxis]
    return np.where(lit, np.array(fg, dtype=np.uint8), np.array(bg, dtype=np.uint8)).astype(np.uint8)


def box_blur(arr: np.ndarray, passes: int = 1) -> np.ndarray:
    """Fast box blur using rolling averages"""
    a = arr.copy()
    for _ in range(passes):
        a = (np.roll(a, 1, axis=0) + a + np.roll(a, -1, axis=0)) / 3.0
        a = (np.roll(a, 1, axis=1) + a + np.roll(a, -1, axis=1)) / 3.0
    return a


class GlowRenderer:
    """Phosphor glow/bloom on top of the scaled framebuffer"""

    def __init__(self, scale: int, fg_color: Tuple[int, int, int], bg_color: Tuple[int, int, int]):
        self.scale = scale
        self.fg_color = fg_color
        self.bg_color = bg_color
        self.final_size = (DISPLAY_W * scale, DISPLAY_H * scale)

    def render(self, pixels: np.ndarray) -> Tuple[pygame.Surface, pygame.Surface]:
        """Return (base_surface, glow_surface) for one frame"""
        base = pygame.surfarray.make_surface(frame_to_rgb(pixels, self.fg_color, self.bg_color))
        base = pygame.transform.scale(base, self.final_size)

        # upscale with kron so the blur has room to spread
        lum = np.kron(pixels.T.astype(np.float32), np.ones((GLOW_UPSCALE, GLOW_UPSCALE), dtype=np.float32))
        glow = np.clip(box_blur(lum, passes=1 + BLUR_RADIUS) * BLOOM_STRENGTH, 0.0, 1.0)
        glow_rgb = (glow[:, :, np.newaxis] * np.array(self.fg_color, dtype=np.float32)).astype(np.uint8)
        glow_surf = pygame.transform.smoothscale(pygame.surfarray.make_surface(glow_rgb), self.final_size)

        return base, glow_surf


# ═══════════════════════════════════════════════════════════════════════════════
# SOUND
# ═══════════════════════════════════════════════════════════════════════════════

def make_tone(tone_hz: int, sample_rate: int = SAMPLE_RATE, volume: float = 0.25) -> np.ndarray:
    """One second of a square wave as mono int16 samples, loopable"""
    t = np.arange(sample_rate) * tone_hz / sample_rate
    wave = np.where((t % 1.0) < 0.5, 1.0, -1.0)
    return (wave * volume * 32767).astype(np.int16)


class Beeper:
    """Plays the tone while the sound timer is running"""

    def __init__(self, tone_hz: int):
        self.sound: Optional[pygame.mixer.Sound] = None
        self.playing = False
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(SAMPLE_RATE, -16, 1)
            rate, _, channels = pygame.mixer.get_init()
            samples = make_tone(tone_hz, rate)
            if channels > 1:
                samples = np.ascontiguousarray(np.repeat(samples[:, np.newaxis], channels, axis=1))
            self.sound = pygame.sndarray.make_sound(samples)
        except pygame.error as e:
            logger.warning("Audio disabled: %s", e)

    def update(self, active: bool):
        if self.sound is None or active == self.playing:
            return
        if active:
            self.sound.play(loops=-1)
        else:
            self.sound.stop()
        self.playing = active


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN EMULATOR APPLICATION
# ═══════════════════════════════════════════════════════════════════════════════

class Chip8App:
    """Window, input and frame pacing around one Chip8CPU"""

    def __init__(self, config: EmulatorConfig):
        self.config = config
        pygame.init()
        self.screen = pygame.display.set_mode((DISPLAY_W * config.scale, DISPLAY_H * config.scale))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 20)

        self.cpu = Chip8CPU(quirks=config.quirks)
        self.renderer = GlowRenderer(config.scale, config.fg_color, config.bg_color)
        self.beeper = Beeper(config.tone_hz)

        self.running = True
        self.paused = False
        self.show_debug = config.debug
        self.saved: Optional[Snapshot] = None
        self.rom_path: Optional[Path] = None
        self.rom_name = "no ROM"

    def load_rom(self, path: Path):
        self.cpu.load_rom_file(path)
        self.rom_path = path
        self.rom_name = path.stem
        self._set_caption()

    def _set_caption(self, extra: str = ""):
        caption = f"Cat's CHIP-8 Emulator - {self.rom_name}"
        if extra:
            caption += f" [{extra}]"
        pygame.display.set_caption(caption)

    def _reset(self):
        if self.rom_path:
            self.load_rom(self.rom_path)
        else:
            self.cpu.reset()

    def _toggle_pause(self):
        self.paused = not self.paused
        if self.paused:
            self.beeper.update(False)
        self._set_caption("Paused" if self.paused else "")

    def _save_snapshot(self):
        self.saved = self.cpu.snapshot()
        logger.info("Snapshot saved")

    def _load_snapshot(self):
        if self.saved is None:
            logger.info("No snapshot to restore")
            return
        self.cpu.restore(self.saved)
        self._set_caption()

    def handle_events(self):
        """Process input events"""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_p:
                    self._toggle_pause()
                elif event.key == pygame.K_F1:
                    self.show_debug = not self.show_debug
                elif event.key == pygame.K_F5:
                    self._reset()
                elif event.key == pygame.K_F6:
                    self._save_snapshot()
                elif event.key == pygame.K_F7:
                    self._load_snapshot()
                elif event.key in KEY_MAP:
                    self.cpu.key_down(KEY_MAP[event.key])

            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    self.cpu.key_up(KEY_MAP[event.key])

    def update(self):
        """Run one frame worth of instructions and tick the timers"""
        if self.paused or self.cpu.halted:
            return
        try:
            self.cpu.run_frame(self.config.cycles_per_frame)
        except Chip8Error as e:
            self._set_caption(f"Halted: {e}")
            logger.error("Emulator crashed with the following state\n%s", self.cpu)
        self.beeper.update(self.cpu.sound_active and not self.cpu.halted)

    def render(self):
        """Render display"""
        base_surf, glow_surf = self.renderer.render(self.cpu.display.pixels)
        self.screen.blit(base_surf, (0, 0))
        self.screen.blit(glow_surf, (0, 0), special_flags=pygame.BLEND_ADD)
        self.cpu.draw_flag = False

        if self.show_debug:
            self._render_debug()

        pygame.display.flip()

    def _debug_lines(self) -> List[str]:
        s = self.cpu.state
        lines = [
            f"PC: ${s.regs.PC:03X}  I: ${s.regs.I:03X}",
            f"SP: {len(s.stack)}  DT: {s.delay_timer.value:02X}  ST: {s.sound_timer.value:02X}",
            "V0-V7: " + " ".join(f"{v:02X}" for v in s.regs.V[:8]),
            "V8-VF: " + " ".join(f"{v:02X}" for v in s.regs.V[8:]),
        ]
        opcode = self.cpu.peek_opcode()
        if opcode is not None:
            lines.append(f"OP: ${opcode:04X} {disassemble(opcode)}")
        return lines

    def _render_debug(self):
        """Render debug information overlay"""
        width = self.screen.get_width()
        overlay = pygame.Surface((200, 110), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 180))
        self.screen.blit(overlay, (width - 210, 5))

        for i, line in enumerate(self._debug_lines()):
            text = self.font.render(line, True, COLORS['fg_green'])
            self.screen.blit(text, (width - 205, 10 + i * 18))

    def run(self):
        """Main loop"""
        while self.running:
            self.handle_events()
            self.update()
            self.render()
            self.clock.tick(TIMER_HZ)

        self.beeper.update(False)
        pygame.quit()


# ═══════════════════════════════════════════════════════════════════════════════
# ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meowchip", description="Cat's CHIP-8 Emulator")
    parser.add_argument("rom", type=Path, help="CHIP-8 ROM file")
    parser.add_argument("--hz", type=int, default=EmulatorConfig.clock_hz, help="instructions per second")
    parser.add_argument("--scale", type=int, default=EmulatorConfig.scale, help="window pixels per CHIP-8 pixel")
    parser.add_argument("--color", choices=["green", "amber", "white", "blue"], default="green")
    parser.add_argument("--quirks", choices=["chip8", "modern"], default="chip8",
                        help="interpreter conventions the ROM expects")
    parser.add_argument("--debug", action="store_true", help="log every instruction and show the register overlay")
    return parser


def main(argv: Optional[Sequence[str]] = None):
    """Main entry point"""
    args = build_parser().parse_args(argv)
    try:
        config = EmulatorConfig.from_args(args)
    except ValueError as e:
        sys.exit(f"meowchip: {e}")

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    print("Controls:")
    print("  CHIP-8 Keypad: 1234 / QWER / ASDF / ZXCV")
    print("  P = Pause/Resume   F1 = Debug   F5 = Reset")
    print("  F6 = Save state    F7 = Load state   ESC = Exit")

    app = Chip8App(config)
    try:
        app.load_rom(args.rom)
    except (OSError, Chip8Error) as e:
        pygame.quit()
        sys.exit(f"meowchip: cannot load {args.rom}: {e}")

    app.run()


if __name__ == "__main__":
    main()
