# CHIP-8 VM - Pure-software CHIP-8 interpreter
#
# Layout:
#   cpu/     registers, opcode decoder, ALU helpers
#   mem/     4K memory + built-in hex font
#   periph/  display, keypad, delay/sound timers
#   emu.py   fetch/decode/execute loop and instruction handlers
#   host.py  headless per-cycle host hook
"""CHIP-8 virtual machine: interpreter core plus a headless host."""

__version__ = "0.1.0"

from .config import VMConfig, PROFILES
from .emu import Chip8Emulator, StopReason
from .errors import (
    Chip8Fault, FaultKind, FaultReport, ProgramTooLarge,
    StackOverflow, StackUnderflow, UnsupportedInstruction,
)
from .host import HeadlessHost, parse_key_schedule
