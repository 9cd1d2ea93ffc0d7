"""
CHIP-8 VM - Fault types

Every fatal guest condition is a Chip8Fault carrying a FaultReport:
  kind    FaultKind (UNSUPPORTED, STACK_OVERFLOW, STACK_UNDERFLOW)
  opcode  raw 16-bit instruction word
  pc      address the instruction was fetched from

The emulator raises these from step(); run() turns them into a
StopReason and keeps the report on emu.fault.
"""

from dataclasses import dataclass
from enum import Enum


class FaultKind(Enum):
    UNSUPPORTED = 'UNSUPPORTED'
    STACK_OVERFLOW = 'STACK_OVERFLOW'
    STACK_UNDERFLOW = 'STACK_UNDERFLOW'


@dataclass(frozen=True)
class FaultReport:
    kind: FaultKind
    opcode: int
    pc: int

    def __str__(self) -> str:
        return f"{self.kind.value}: opcode ${self.opcode:04X} at ${self.pc:03X}"


class Chip8Fault(Exception):
    """Base class for fatal guest faults."""

    kind = FaultKind.UNSUPPORTED

    def __init__(self, opcode: int, pc: int, detail: str = ''):
        self.report = FaultReport(self.kind, opcode & 0xFFFF, pc & 0xFFFF)
        message = str(self.report)
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    @property
    def opcode(self) -> int:
        return self.report.opcode

    @property
    def pc(self) -> int:
        return self.report.pc


class UnsupportedInstruction(Chip8Fault):
    """Opcode matches no known encoding, or is the unimplemented SYS call."""
    kind = FaultKind.UNSUPPORTED


class StackOverflow(Chip8Fault):
    """CALL with all 16 return slots in use."""
    kind = FaultKind.STACK_OVERFLOW


class StackUnderflow(Chip8Fault):
    """RET with an empty call stack."""
    kind = FaultKind.STACK_UNDERFLOW


class ProgramTooLarge(ValueError):
    """Program image does not fit between 0x200 and the end of memory."""
