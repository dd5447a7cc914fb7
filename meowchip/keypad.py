"""16-key hex keypad state"""

from typing import List, Optional, Set

from .constants import NUM_KEYS


class Keypad:
    """
    Pressed/released state of keys 0x0-0xF

    The host is the only writer (press/release). For FX0A the interpreter
    arms a wait with begin_wait(); keys already held at that moment do not
    count until they are released and pressed again. Presses made while
    armed are latched, so a tap released before the next step still counts.
    """

    def __init__(self):
        self.keys: List[bool] = [False] * NUM_KEYS
        self._held_at_wait: Set[int] = set()
        self._taps: Set[int] = set()
        self._armed = False

    @staticmethod
    def _valid(key: int) -> bool:
        return 0 <= key < NUM_KEYS

    def press(self, key: int):
        if self._valid(key):
            self.keys[key] = True
            if self._armed and key not in self._held_at_wait:
                self._taps.add(key)

    def release(self, key: int):
        if self._valid(key):
            self.keys[key] = False
            self._held_at_wait.discard(key)

    def is_pressed(self, key: int) -> bool:
        return self.keys[key & 0xF]

    def begin_wait(self):
        self._held_at_wait = {k for k, pressed in enumerate(self.keys) if pressed}
        self._taps = set()
        self._armed = True

    def end_wait(self):
        self._taps = set()
        self._armed = False

    def newly_pressed(self) -> Optional[int]:
        """Lowest key pressed since begin_wait(), or None"""
        down = {k for k, pressed in enumerate(self.keys) if pressed and k not in self._held_at_wait}
        candidates = down | self._taps
        return min(candidates) if candidates else None

    def __repr__(self):
        down = [f"{k:X}" for k, pressed in enumerate(self.keys) if pressed]
        return f"Keypad(pressed=[{', '.join(down)}])"
