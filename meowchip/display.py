"""64x32 monochrome framebuffer"""

from typing import Sequence

import numpy as np

from .constants import DISPLAY_H, DISPLAY_W, SPRITE_WIDTH


class DisplayBuffer:
    """Pixel grid indexed [row, column], one uint8 (0 or 1) per pixel"""

    def __init__(self, width: int = DISPLAY_W, height: int = DISPLAY_H):
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width), dtype=np.uint8)

    def clear(self):
        self.pixels.fill(0)

    def get(self, x: int, y: int) -> int:
        return int(self.pixels[y % self.height, x % self.width])

    def draw_sprite(self, x: int, y: int, rows: Sequence[int]) -> bool:
        """
        XOR a sprite into the buffer at (x, y)

        Each row byte is 8 pixels, MSB leftmost. Pixels past the right or
        bottom edge wrap around to the opposite edge.

        Returns:
            True if any lit pixel was switched off
        """
        if not len(rows):
            return False

        # unpack the row bytes into a (rows, 8) bit matrix, MSB first
        sprite = np.unpackbits(np.frombuffer(bytes(rows), dtype=np.uint8).reshape(-1, 1), axis=1)

        ys = (y + np.arange(sprite.shape[0])) % self.height
        xs = (x + np.arange(SPRITE_WIDTH)) % self.width
        region = np.ix_(ys, xs)

        before = self.pixels[region]
        collision = bool(np.any(before & sprite))
        self.pixels[region] = before ^ sprite
        return collision

    def as_bool(self) -> np.ndarray:
        return self.pixels.astype(bool)

    def __str__(self):
        return "\n".join("".join("#" if p else "." for p in row) for row in self.pixels)
