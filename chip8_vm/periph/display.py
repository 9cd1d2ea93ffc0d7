"""
CHIP-8 VM - 64x32 Monochrome Framebuffer

Pixels are stored as a flat row-major list of booleans: pixel (x, y)
lives at index y * 64 + x. Every access wraps both coordinates
(x mod 64, y mod 32), so sprites drawn across an edge continue on the
opposite edge.

Sprites are XORed in, one byte per row, most significant bit leftmost.
A collision is any pixel that was set before the write and is cleared
after it.
"""

from typing import Iterable, List

WIDTH = 64
HEIGHT = 32
SPRITE_WIDTH = 8


class Display:
    """Framebuffer with XOR sprite blitting and collision detection."""

    def __init__(self):
        self.pixels: List[bool] = [False] * (WIDTH * HEIGHT)
        # Set on any change; the host clears it after presenting a frame.
        self.dirty = False

    @staticmethod
    def index(x: int, y: int) -> int:
        return (y % HEIGHT) * WIDTH + (x % WIDTH)

    def get(self, x: int, y: int) -> bool:
        return self.pixels[self.index(x, y)]

    def set(self, x: int, y: int, value: bool):
        self.pixels[self.index(x, y)] = bool(value)
        self.dirty = True

    def xor_pixel(self, x: int, y: int) -> bool:
        """Flip one pixel. Returns True if it went from set to cleared."""
        i = self.index(x, y)
        was_set = self.pixels[i]
        self.pixels[i] = not was_set
        return was_set

    def clear(self):
        self.pixels = [False] * (WIDTH * HEIGHT)
        self.dirty = True

    def draw_sprite(self, x: int, y: int, rows: Iterable[int]) -> bool:
        """XOR a sprite into the buffer at (x, y).

        Returns True if any previously set pixel was cleared.
        """
        collision = False
        for row_offset, row in enumerate(rows):
            for bit in range(SPRITE_WIDTH):
                if row & (0x80 >> bit):
                    if self.xor_pixel(x + bit, y + row_offset):
                        collision = True
        self.dirty = True
        return collision

    def lit_count(self) -> int:
        return sum(self.pixels)

    def rows(self) -> List[List[bool]]:
        return [self.pixels[y * WIDTH:(y + 1) * WIDTH] for y in range(HEIGHT)]

    def render_text(self, on: str = '#', off: str = '.') -> str:
        """Format the buffer as HEIGHT lines of WIDTH characters."""
        return '\n'.join(
            ''.join(on if p else off for p in row) for row in self.rows()
        )

    def reset(self):
        self.pixels = [False] * (WIDTH * HEIGHT)
        self.dirty = False
