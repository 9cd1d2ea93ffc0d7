"""
CHIP-8 VM - Main Emulator Class

Integrates:
  - CPU registers + call stack (cpu/regs.py)
  - 4K memory with built-in font (mem/memory.py)
  - Opcode decoder (cpu/decoder.py)
  - ALU helpers (cpu/alu.py)
  - Peripherals: display, keypad, delay/sound timers

Execution model (one cycle):
  1. Host hook runs (input in, frame out)
  2. Fetch the big-endian word at PC, PC += 2
  3. Decode -> handler key
  4. Execute handler -> update registers, memory, display, timers
  5. Tick the 60 Hz timers against the wall clock

Termination reasons:
  - TIMEOUT:  max_cycles reached
  - HOST:     host hook returned False
  - ILLEGAL:  unsupported / unimplemented opcode
  - STACK:    call stack overflow or underflow
"""

import logging
import random
from collections import deque
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from .config import VMConfig
from .cpu import alu
from .cpu.decoder import Instruction, decode_at
from .cpu.regs import Registers, PROGRAM_START, VF
from .errors import (
    Chip8Fault, FaultKind, FaultReport,
    StackOverflow, StackUnderflow, UnsupportedInstruction,
)
from .mem.memory import Memory, glyph_address
from .periph.display import Display
from .periph.keypad import Keypad
from .periph.timer import Clock, TimerPeripheral

log = logging.getLogger(__name__)
trace_log = logging.getLogger('chip8_vm.trace')

HostHook = Callable[['Chip8Emulator'], Optional[bool]]


class StopReason(Enum):
    TIMEOUT = 'TIMEOUT'
    HOST = 'HOST'
    ILLEGAL = 'ILLEGAL'
    STACK = 'STACK'


_FAULT_STOP = {
    FaultKind.UNSUPPORTED: StopReason.ILLEGAL,
    FaultKind.STACK_OVERFLOW: StopReason.STACK,
    FaultKind.STACK_UNDERFLOW: StopReason.STACK,
}


class Chip8Emulator:
    """CHIP-8 interpreter.

    Usage:
        emu = Chip8Emulator()
        emu.load_program(Path('pong.ch8').read_bytes())
        reason = emu.run(max_cycles=10_000, hook=my_host)
        print(emu.display.render_text())

    The hook is called with the emulator before every fetch. It may read
    and write any state (typically the keypad and display.dirty) and
    returns False to stop the run.
    """

    def __init__(self, config: Optional[VMConfig] = None,
                 clock: Optional[Clock] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or VMConfig()

        # Core components
        self.regs = Registers()
        self.mem = Memory()

        # Peripherals
        self.display = Display()
        self.keypad = Keypad()
        self.timers = TimerPeripheral(clock)

        self.rng = rng or random.Random(self.config.seed)

        # Last fatal fault seen by run()
        self.fault: Optional[FaultReport] = None

        # Context of the instruction being executed (for fault reports)
        self._fetch_pc = PROGRAM_START
        self._opcode = 0

        self._trace = self.config.trace
        # Most recent trace lines only; the trace logger sees every line
        self._trace_output = deque(maxlen=self.config.trace_depth)

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_program(self, data: bytes):
        """Copy a raw program image to $200 and point PC at it."""
        self.mem.load_binary(data, PROGRAM_START)
        self.regs.PC = PROGRAM_START
        log.info("Loaded %d byte program at $%03X", len(data), PROGRAM_START)

    def load_file(self, path):
        """Load a ROM image from disk."""
        self.load_program(Path(path).read_bytes())

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self):
        """Fetch, decode and execute one instruction.

        Raises a Chip8Fault subclass on unsupported opcodes and stack
        faults. A word that fails to decode leaves PC on that word; a
        fault raised while executing (SYS, CALL, RET) leaves PC past it.
        Either way the fault report carries the fetch address.
        """
        pc = self.regs.PC
        self._fetch_pc = pc

        ins, next_pc = decode_at(self.mem, pc)
        self._opcode = ins.opcode
        self.regs.PC = next_pc

        if self._trace:
            self._record_trace(pc, ins)

        self._dispatch[ins.key](ins)

        self.regs.cycles += 1
        self.timers.update()

    def run(self, max_cycles: Optional[int] = None,
            hook: Optional[HostHook] = None) -> StopReason:
        """Run until the host stops us, a fault occurs, or max_cycles.

        max_cycles=None falls back to the config value; if that is also
        None the loop only ends via the hook or a fault.
        """
        if max_cycles is None:
            max_cycles = self.config.max_cycles

        executed = 0
        while max_cycles is None or executed < max_cycles:
            if hook is not None and hook(self) is False:
                log.info("Host stopped execution after %d cycles", executed)
                return StopReason.HOST
            try:
                self.step()
            except Chip8Fault as e:
                self.fault = e.report
                log.error("Guest fault: %s", e)
                return _FAULT_STOP[e.report.kind]
            executed += 1

        return StopReason.TIMEOUT

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(ins) where ins is a decoded Instruction.

    def _build_dispatch(self) -> Dict[str, Callable[[Instruction], None]]:
        """Build handler key -> method dispatch table."""
        return {
            # ── System / flow ──
            'CLS':      self._op_cls,
            'RET':      self._op_ret,
            'SYS':      self._op_sys,
            'JP':       self._op_jp,
            'CALL':     self._op_call,

            # ── Skips ──
            'SE_BYTE':  self._op_se_byte,
            'SNE_BYTE': self._op_sne_byte,
            'SE_REG':   self._op_se_reg,
            'SNE_REG':  self._op_sne_reg,

            # ── Loads / arithmetic ──
            'LD_BYTE':  self._op_ld_byte,
            'ADD_BYTE': self._op_add_byte,
            'LD_REG':   self._op_ld_reg,
            'OR':       self._op_or,
            'AND':      self._op_and,
            'XOR':      self._op_xor,
            'ADD_REG':  self._op_add_reg,
            'SUB':      self._op_sub,
            'SHR':      self._op_shr,
            'SUBN':     self._op_subn,
            'SHL':      self._op_shl,

            # ── Index / jump / random / draw ──
            'LD_I':     self._op_ld_i,
            'JP_V0':    self._op_jp_v0,
            'RND':      self._op_rnd,
            'DRW':      self._op_drw,

            # ── Keypad ──
            'SKP':      self._op_skp,
            'SKNP':     self._op_sknp,
            'LD_VX_K':  self._op_ld_vx_k,

            # ── Timers ──
            'LD_VX_DT': self._op_ld_vx_dt,
            'LD_DT_VX': self._op_ld_dt_vx,
            'LD_ST_VX': self._op_ld_st_vx,

            # ── Index / memory ──
            'ADD_I':    self._op_add_i,
            'LD_F':     self._op_ld_f,
            'LD_B':     self._op_ld_b,
            'STORE':    self._op_store,
            'LOAD':     self._op_load,
        }

    def _skip_if(self, condition: bool):
        if condition:
            self.regs.PC = (self.regs.PC + 2) & 0xFFFF

    def _set_with_flag(self, x: int, result: int, vf: int):
        # VF written last so it wins when x == F
        self.regs.set(x, result)
        self.regs.V[VF] = vf

    # ── System / flow ──

    def _op_cls(self, ins):
        self.display.clear()

    def _op_ret(self, ins):
        if self.regs.stack_empty:
            raise StackUnderflow(self._opcode, self._fetch_pc, "RET with empty stack")
        self.regs.PC = self.regs.pop()

    def _op_sys(self, ins):
        """0nnn machine-language call - never implemented by interpreters."""
        raise UnsupportedInstruction(self._opcode, self._fetch_pc, "SYS call")

    def _op_jp(self, ins):
        self.regs.PC = ins.nnn

    def _op_call(self, ins):
        if self.regs.stack_full:
            raise StackOverflow(self._opcode, self._fetch_pc, "CALL nesting exceeds 16")
        self.regs.push(self.regs.PC)  # already advanced past the CALL
        self.regs.PC = ins.nnn

    # ── Skips ──

    def _op_se_byte(self, ins):
        self._skip_if(self.regs.get(ins.x) == ins.kk)

    def _op_sne_byte(self, ins):
        self._skip_if(self.regs.get(ins.x) != ins.kk)

    def _op_se_reg(self, ins):
        self._skip_if(self.regs.get(ins.x) == self.regs.get(ins.y))

    def _op_sne_reg(self, ins):
        self._skip_if(self.regs.get(ins.x) != self.regs.get(ins.y))

    # ── Loads / arithmetic ──

    def _op_ld_byte(self, ins):
        self.regs.set(ins.x, ins.kk)

    def _op_add_byte(self, ins):
        """ADD Vx, byte wraps and leaves VF alone."""
        self.regs.set(ins.x, self.regs.get(ins.x) + ins.kk)

    def _op_ld_reg(self, ins):
        self.regs.set(ins.x, self.regs.get(ins.y))

    def _op_or(self, ins):
        self.regs.set(ins.x, self.regs.get(ins.x) | self.regs.get(ins.y))

    def _op_and(self, ins):
        self.regs.set(ins.x, self.regs.get(ins.x) & self.regs.get(ins.y))

    def _op_xor(self, ins):
        self.regs.set(ins.x, self.regs.get(ins.x) ^ self.regs.get(ins.y))

    def _op_add_reg(self, ins):
        result, carry = alu.add8(self.regs.get(ins.x), self.regs.get(ins.y))
        self._set_with_flag(ins.x, result, carry)

    def _op_sub(self, ins):
        result, no_borrow = alu.sub8(self.regs.get(ins.x), self.regs.get(ins.y))
        self._set_with_flag(ins.x, result, no_borrow)

    def _op_subn(self, ins):
        result, no_borrow = alu.sub8(self.regs.get(ins.y), self.regs.get(ins.x))
        self._set_with_flag(ins.x, result, no_borrow)

    def _op_shr(self, ins):
        """Vx = Vy >> 1, VF = bit 0 of Vy."""
        result, out = alu.shr8(self.regs.get(ins.y))
        self._set_with_flag(ins.x, result, out)

    def _op_shl(self, ins):
        """Vx = Vy << 1, VF = bit 7 of Vy."""
        result, out = alu.shl8(self.regs.get(ins.y))
        self._set_with_flag(ins.x, result, out)

    # ── Index / jump / random / draw ──

    def _op_ld_i(self, ins):
        self.regs.I = ins.nnn

    def _op_jp_v0(self, ins):
        self.regs.PC = (ins.nnn + self.regs.get(0)) & 0xFFFF

    def _op_rnd(self, ins):
        self.regs.set(ins.x, self.rng.randint(0, 0xFF) & ins.kk)

    def _op_drw(self, ins):
        rows = self.mem.read_block(self.regs.I, ins.n)
        collision = self.display.draw_sprite(
            self.regs.get(ins.x), self.regs.get(ins.y), rows)
        self.regs.flag = collision

    # ── Keypad ──

    def _op_skp(self, ins):
        self._skip_if(self.keypad.is_pressed(self.regs.get(ins.x)))

    def _op_sknp(self, ins):
        self._skip_if(not self.keypad.is_pressed(self.regs.get(ins.x)))

    def _op_ld_vx_k(self, ins):
        """Wait for a key by re-fetching this instruction until one is held."""
        key = self.keypad.first_pressed()
        if key is None:
            self.regs.PC = self._fetch_pc
            return
        self.regs.set(ins.x, key)

    # ── Timers ──

    def _op_ld_vx_dt(self, ins):
        self.regs.set(ins.x, self.timers.delay.value)

    def _op_ld_dt_vx(self, ins):
        self.timers.set_delay(self.regs.get(ins.x))

    def _op_ld_st_vx(self, ins):
        self.timers.set_sound(self.regs.get(ins.x))

    # ── Index / memory ──

    def _op_add_i(self, ins):
        """I += Vx as a 16-bit add; no 8-bit wrap, no flag."""
        self.regs.I = (self.regs.I + self.regs.get(ins.x)) & 0xFFFF

    def _op_ld_f(self, ins):
        self.regs.I = glyph_address(self.regs.get(ins.x))

    def _op_ld_b(self, ins):
        for offset, digit in enumerate(alu.bcd3(self.regs.get(ins.x))):
            self.mem.write8(self.regs.I + offset, digit)

    def _op_store(self, ins):
        """Store V0..Vx inclusive at I, then advance I past them."""
        for k in range(ins.x + 1):
            self.mem.write8(self.regs.I + k, self.regs.V[k])
        self.regs.I = (self.regs.I + ins.x + 1) & 0xFFFF

    def _op_load(self, ins):
        """Load V0..Vx inclusive from I, then advance I past them."""
        for k in range(ins.x + 1):
            self.regs.V[k] = self.mem.read8(self.regs.I + k)
        self.regs.I = (self.regs.I + ins.x + 1) & 0xFFFF

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def _record_trace(self, pc: int, ins: Instruction):
        line = f"${pc:03X}: {ins.opcode:04X}  {ins.text():18s} {self.regs.display()}"
        self._trace_output.append(line)
        trace_log.debug(line)

    def enable_trace(self, enable: bool = True):
        """Enable per-instruction trace (address, opcode, mnemonic, registers)."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Full emulator reset. The loaded program is discarded."""
        self.regs.reset()
        self.mem.reset()
        self.display.reset()
        self.keypad.reset()
        self.timers.reset()
        self.fault = None
        self._trace_output.clear()
