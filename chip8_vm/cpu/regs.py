"""
CHIP-8 VM - CPU Register Set + Call Stack

Register model:
  V0-VF  16 x 8-bit general purpose registers
         VF doubles as the carry / borrow / collision flag output
  I      16-bit index register (memory address)
  PC     16-bit program counter
  SP     call stack pointer (number of return addresses held)
  stack  16 x 16-bit return addresses

All writes through the helpers mask to the register width, so callers can
hand in raw Python ints from arithmetic.
"""

from typing import List

NUM_REGISTERS = 16
STACK_DEPTH = 16
VF = 0xF

PROGRAM_START = 0x200


class Registers:
    """CHIP-8 CPU register set."""

    __slots__ = ('V', 'I', 'PC', 'SP', 'stack', 'cycles')

    def __init__(self):
        self.V: List[int] = [0] * NUM_REGISTERS
        self.I: int = 0
        self.PC: int = PROGRAM_START
        self.SP: int = 0
        self.stack: List[int] = [0] * STACK_DEPTH
        self.cycles: int = 0  # executed instruction counter

    # --- General purpose registers ---

    def get(self, index: int) -> int:
        return self.V[index & 0xF]

    def set(self, index: int, value: int):
        """Write Vx, wrapping to 8 bits."""
        self.V[index & 0xF] = value & 0xFF

    @property
    def flag(self) -> int:
        return self.V[VF]

    @flag.setter
    def flag(self, value: int):
        self.V[VF] = 1 if value else 0

    # --- Stack operations ---

    @property
    def stack_full(self) -> bool:
        return self.SP >= STACK_DEPTH

    @property
    def stack_empty(self) -> bool:
        return self.SP == 0

    def push(self, address: int):
        """Push a return address. Raises IndexError when all slots are used."""
        if self.stack_full:
            raise IndexError("call stack full")
        self.stack[self.SP] = address & 0xFFFF
        self.SP += 1

    def pop(self) -> int:
        """Pop a return address. Raises IndexError on an empty stack."""
        if self.stack_empty:
            raise IndexError("call stack empty")
        self.SP -= 1
        return self.stack[self.SP]

    # --- Display ---

    def display(self) -> str:
        """Format register state for debugging."""
        v_str = ' '.join(f"{v:02X}" for v in self.V)
        return (f"PC={self.PC:04X} I={self.I:04X} SP={self.SP:X} "
                f"V=[{v_str}]")

    def reset(self):
        """Reset CPU to power-on state."""
        self.V = [0] * NUM_REGISTERS
        self.I = 0
        self.PC = PROGRAM_START
        self.SP = 0
        self.stack = [0] * STACK_DEPTH
        self.cycles = 0
