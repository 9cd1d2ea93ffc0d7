"""
CHIP-8 VM - 16-key Hex Keypad

Key state is owned by the host: it writes the flags between cycles and
the interpreter only reads them (SKP, SKNP, LD Vx, K).

Conventional host keyboard layout:

    host keys        keypad
    1 2 3 4          1 2 3 C
    Q W E R    ->    4 5 6 D
    A S D F          7 8 9 E
    Z X C V          A 0 B F
"""

from typing import Dict, Iterable, List, Optional

NUM_KEYS = 16

KEYMAP: Dict[str, int] = {
    '1': 0x1, '2': 0x2, '3': 0x3, '4': 0xC,
    'q': 0x4, 'w': 0x5, 'e': 0x6, 'r': 0xD,
    'a': 0x7, 's': 0x8, 'd': 0x9, 'f': 0xE,
    'z': 0xA, 'x': 0x0, 'c': 0xB, 'v': 0xF,
}


class Keypad:
    """Sixteen pressed/released flags indexed by key value 0-F."""

    def __init__(self):
        self.keys: List[bool] = [False] * NUM_KEYS

    def is_pressed(self, key: int) -> bool:
        return self.keys[key & 0xF]

    def first_pressed(self) -> Optional[int]:
        """Lowest pressed key index, or None if nothing is held."""
        for key, pressed in enumerate(self.keys):
            if pressed:
                return key
        return None

    # --- Host side ---

    def press(self, key: int):
        self.keys[key & 0xF] = True

    def release(self, key: int):
        self.keys[key & 0xF] = False

    def set_state(self, held: Iterable[int]):
        """Overwrite the whole key array: keys in held are pressed."""
        held = {k & 0xF for k in held}
        self.keys = [k in held for k in range(NUM_KEYS)]

    def press_char(self, char: str) -> bool:
        """Press the keypad key mapped to a host character. False if unmapped."""
        key = KEYMAP.get(char.lower())
        if key is None:
            return False
        self.press(key)
        return True

    def release_char(self, char: str) -> bool:
        key = KEYMAP.get(char.lower())
        if key is None:
            return False
        self.release(key)
        return True

    def reset(self):
        self.keys = [False] * NUM_KEYS
