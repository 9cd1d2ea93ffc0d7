"""
CHIP-8 VM - 4K Memory

Memory map:
  $000-$04F  Built-in hex font (16 glyphs x 5 bytes)
  $050-$1FF  Reserved for the interpreter (unused, zero)
  $200-$FFF  Program image + working RAM

All addresses are masked to 12 bits, so reads and writes past $FFF wrap
to the bottom of memory.
"""

from ..cpu.regs import PROGRAM_START
from ..errors import ProgramTooLarge

MEMORY_SIZE = 0x1000
ADDR_MASK = MEMORY_SIZE - 1

FONT_START = 0x000
GLYPH_SIZE = 5

# Hex digits 0-F, 4 pixels wide, 5 rows tall (top nibble of each byte)
FONT = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


def glyph_address(digit: int) -> int:
    """Address of the font glyph for a hex digit."""
    return FONT_START + GLYPH_SIZE * (digit & 0xF)


class Memory:
    """4K byte-addressable memory with the font preloaded."""

    def __init__(self):
        self._mem = bytearray(MEMORY_SIZE)
        self._load_font()

    def _load_font(self):
        self._mem[FONT_START:FONT_START + len(FONT)] = FONT

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        return self._mem[addr & ADDR_MASK]

    def write8(self, addr: int, value: int):
        self._mem[addr & ADDR_MASK] = value & 0xFF

    def read16(self, addr: int) -> int:
        """Read 16-bit value (big-endian)."""
        return (self.read8(addr) << 8) | self.read8(addr + 1)

    def write16(self, addr: int, value: int):
        """Write 16-bit value (big-endian)."""
        self.write8(addr, (value >> 8) & 0xFF)
        self.write8(addr + 1, value & 0xFF)

    def read_block(self, addr: int, length: int) -> bytes:
        return bytes(self.read8(addr + i) for i in range(length))

    # --- Bulk load ---

    def load_binary(self, data: bytes, base_addr: int = PROGRAM_START):
        """Copy raw bytes into memory starting at base_addr.

        Raises ProgramTooLarge if the image runs past the end of memory.
        """
        data = bytes(data)
        if base_addr + len(data) > MEMORY_SIZE:
            raise ProgramTooLarge(
                f"{len(data)} bytes at ${base_addr:03X} exceeds "
                f"{MEMORY_SIZE - base_addr} bytes available")
        self._mem[base_addr:base_addr + len(data)] = data

    def reset(self):
        """Zero memory and reload the font."""
        self._mem = bytearray(MEMORY_SIZE)
        self._load_font()

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 256) -> str:
        """Produce a hex dump of memory for debugging."""
        lines = []
        for offset in range(0, length, 16):
            addr = (start + offset) & ADDR_MASK
            row = [self.read8(addr + i) for i in range(16)]
            hex_bytes = ' '.join(f'{b:02X}' for b in row)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in row)
            lines.append(f'{addr:03X}  {hex_bytes}  {ascii_bytes}')
        return '\n'.join(lines)
