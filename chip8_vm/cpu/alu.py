"""
CHIP-8 VM - ALU Operations

Pure functions used by the 8xy_ handlers and LD B, Vx. Each flag-setting
operation returns (result_byte, vf) and leaves it to the caller to write
Vx first and VF second, so that VF wins when x is F.

Flag conventions:
  add8   vf = carry out of bit 7
  sub8   vf = 1 when NO borrow occurred (a >= b), 0 otherwise
  shr8   vf = bit 0 of the source
  shl8   vf = bit 7 of the source
"""

from typing import Tuple


# ══════════════════════════════════════════════
# 8-bit arithmetic - return (result, vf)
# ══════════════════════════════════════════════

def add8(a: int, b: int) -> Tuple[int, int]:
    """Add two bytes, wrapping mod 256."""
    result = a + b
    return result & 0xFF, 1 if result > 0xFF else 0


def sub8(a: int, b: int) -> Tuple[int, int]:
    """Compute a - b mod 256. vf is the inverted borrow."""
    return (a - b) & 0xFF, 1 if a >= b else 0


def shr8(value: int) -> Tuple[int, int]:
    """Logical shift right by one; vf gets the bit shifted out."""
    return (value >> 1) & 0x7F, value & 0x01


def shl8(value: int) -> Tuple[int, int]:
    """Shift left by one; vf gets the bit shifted out."""
    return (value << 1) & 0xFF, (value >> 7) & 0x01


# ══════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════

def bcd3(value: int) -> Tuple[int, int, int]:
    """Split a byte into (hundreds, tens, ones)."""
    value &= 0xFF
    return value // 100, (value // 10) % 10, value % 10
