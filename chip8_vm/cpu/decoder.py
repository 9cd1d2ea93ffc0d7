"""
CHIP-8 VM - Opcode Decoder / Dispatch Table

Every instruction is one big-endian 16-bit word. The table below maps a
(mask, pattern) pair to a handler key and an operand format. Decoding
first selects the group by the top nibble, then tests each entry of that
group in order, so the catch-all SYS (0nnn) must come after CLS/RET.

Operand fields:
  nnn  low 12 bits (address)
  x    bits 8-11 (register)
  y    bits 4-7  (register)
  kk   low byte  (immediate)
  n    low nibble (sprite height)

Operand formats:
  NONE   no operands
  ADDR   nnn
  XKK    x, kk
  XY     x, y
  XYN    x, y, n
  X      x
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..errors import UnsupportedInstruction


# ──────────────────────────────────────────────
# Operand format constants
# ──────────────────────────────────────────────

NONE = 'NONE'
ADDR = 'ADDR'
XKK  = 'XKK'
XY   = 'XY'
XYN  = 'XYN'
X    = 'X'

# Operand fields each format exposes to its template
FORMAT_FIELDS: Dict[str, Tuple[str, ...]] = {
    NONE: (),
    ADDR: ('nnn',),
    XKK:  ('x', 'kk'),
    XY:   ('x', 'y'),
    XYN:  ('x', 'y', 'n'),
    X:    ('x',),
}


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: (mask, pattern, key, operand_format, assembly template)
#
# key is what the emulator dispatches on; the template is only used for
# trace output.

OPCODES: List[Tuple[int, int, str, str, str]] = [
    # ── System / flow ──
    (0xFFFF, 0x00E0, 'CLS',      NONE, 'CLS'),
    (0xFFFF, 0x00EE, 'RET',      NONE, 'RET'),
    (0xF000, 0x0000, 'SYS',      ADDR, 'SYS 0x{nnn:03X}'),
    (0xF000, 0x1000, 'JP',       ADDR, 'JP 0x{nnn:03X}'),
    (0xF000, 0x2000, 'CALL',     ADDR, 'CALL 0x{nnn:03X}'),

    # ── Conditional skips ──
    (0xF000, 0x3000, 'SE_BYTE',  XKK,  'SE V{x:X}, 0x{kk:02X}'),
    (0xF000, 0x4000, 'SNE_BYTE', XKK,  'SNE V{x:X}, 0x{kk:02X}'),
    (0xF00F, 0x5000, 'SE_REG',   XY,   'SE V{x:X}, V{y:X}'),

    # ── Immediate load / add ──
    (0xF000, 0x6000, 'LD_BYTE',  XKK,  'LD V{x:X}, 0x{kk:02X}'),
    (0xF000, 0x7000, 'ADD_BYTE', XKK,  'ADD V{x:X}, 0x{kk:02X}'),

    # ── Register ALU ──
    (0xF00F, 0x8000, 'LD_REG',   XY,   'LD V{x:X}, V{y:X}'),
    (0xF00F, 0x8001, 'OR',       XY,   'OR V{x:X}, V{y:X}'),
    (0xF00F, 0x8002, 'AND',      XY,   'AND V{x:X}, V{y:X}'),
    (0xF00F, 0x8003, 'XOR',      XY,   'XOR V{x:X}, V{y:X}'),
    (0xF00F, 0x8004, 'ADD_REG',  XY,   'ADD V{x:X}, V{y:X}'),
    (0xF00F, 0x8005, 'SUB',      XY,   'SUB V{x:X}, V{y:X}'),
    (0xF00F, 0x8006, 'SHR',      XY,   'SHR V{x:X}, V{y:X}'),
    (0xF00F, 0x8007, 'SUBN',     XY,   'SUBN V{x:X}, V{y:X}'),
    (0xF00F, 0x800E, 'SHL',      XY,   'SHL V{x:X}, V{y:X}'),
    (0xF00F, 0x9000, 'SNE_REG',  XY,   'SNE V{x:X}, V{y:X}'),

    # ── Index / jump / random / draw ──
    (0xF000, 0xA000, 'LD_I',     ADDR, 'LD I, 0x{nnn:03X}'),
    (0xF000, 0xB000, 'JP_V0',    ADDR, 'JP V0, 0x{nnn:03X}'),
    (0xF000, 0xC000, 'RND',      XKK,  'RND V{x:X}, 0x{kk:02X}'),
    (0xF000, 0xD000, 'DRW',      XYN,  'DRW V{x:X}, V{y:X}, {n}'),

    # ── Keypad ──
    (0xF0FF, 0xE09E, 'SKP',      X,    'SKP V{x:X}'),
    (0xF0FF, 0xE0A1, 'SKNP',     X,    'SKNP V{x:X}'),

    # ── Timers / memory ──
    (0xF0FF, 0xF007, 'LD_VX_DT', X,    'LD V{x:X}, DT'),
    (0xF0FF, 0xF00A, 'LD_VX_K',  X,    'LD V{x:X}, K'),
    (0xF0FF, 0xF015, 'LD_DT_VX', X,    'LD DT, V{x:X}'),
    (0xF0FF, 0xF018, 'LD_ST_VX', X,    'LD ST, V{x:X}'),
    (0xF0FF, 0xF01E, 'ADD_I',    X,    'ADD I, V{x:X}'),
    (0xF0FF, 0xF029, 'LD_F',     X,    'LD F, V{x:X}'),
    (0xF0FF, 0xF033, 'LD_B',     X,    'LD B, V{x:X}'),
    (0xF0FF, 0xF055, 'STORE',    X,    'LD [I], V{x:X}'),
    (0xF0FF, 0xF065, 'LOAD',     X,    'LD V{x:X}, [I]'),
]

# Group entries by top nibble so decode only scans the candidates.
OPCODE_GROUPS: Dict[int, List[Tuple[int, int, str, str, str]]] = {}
for _entry in OPCODES:
    OPCODE_GROUPS.setdefault(_entry[1] >> 12, []).append(_entry)
del _entry


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction word with its operand fields split out."""
    opcode: int
    key: str
    fmt: str
    template: str

    @property
    def nnn(self) -> int:
        return self.opcode & 0x0FFF

    @property
    def x(self) -> int:
        return (self.opcode >> 8) & 0xF

    @property
    def y(self) -> int:
        return (self.opcode >> 4) & 0xF

    @property
    def kk(self) -> int:
        return self.opcode & 0xFF

    @property
    def n(self) -> int:
        return self.opcode & 0xF

    def operands(self) -> Dict[str, int]:
        """Operand fields named by this instruction's format."""
        return {name: getattr(self, name) for name in FORMAT_FIELDS[self.fmt]}

    def text(self) -> str:
        """Assembly-style rendering, e.g. ``DRW V1, V2, 5``."""
        return self.template.format(**self.operands())

    def __str__(self) -> str:
        return self.text()


def decode(opcode: int, pc: int = 0) -> Instruction:
    """Decode a 16-bit instruction word.

    pc is only used to fill in the fault report when the word matches no
    entry.
    """
    opcode &= 0xFFFF
    for mask, pattern, key, fmt, template in OPCODE_GROUPS.get(opcode >> 12, ()):
        if opcode & mask == pattern:
            return Instruction(opcode, key, fmt, template)
    raise UnsupportedInstruction(opcode, pc, "no matching encoding")


def decode_at(memory, pc: int) -> Tuple[Instruction, int]:
    """Fetch and decode the word at pc.

    Returns: (instruction, next_pc)
    """
    opcode = memory.read16(pc)
    return decode(opcode, pc), (pc + 2) & 0xFFFF
