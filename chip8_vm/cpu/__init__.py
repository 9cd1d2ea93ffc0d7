from .regs import Registers, NUM_REGISTERS, STACK_DEPTH, PROGRAM_START, VF
from .decoder import Instruction, decode, decode_at, OPCODES
