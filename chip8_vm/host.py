"""
CHIP-8 VM - Headless Host

A per-cycle hook for Chip8Emulator.run() that stands in for a windowed
front end:

  - throttles execution to cycles_per_second of wall-clock time
  - applies a scripted key schedule (cycle number -> keys held)
  - counts frames: each cycle where the display changed since the last
    one, the frame callback gets the display and the dirty flag is cleared

Key schedule text format, as used by the CLI:

    "0:5,120:,300:AF"

means hold key 5 from cycle 0, nothing from cycle 120, keys A and F from
cycle 300 on. Keys are hex digits.
"""

import logging
import time
from typing import Callable, Dict, FrozenSet, Optional

from .periph.display import Display

log = logging.getLogger(__name__)

FrameCallback = Callable[[Display], None]


class KeyScheduleError(ValueError):
    pass


def parse_key_schedule(text: str) -> Dict[int, FrozenSet[int]]:
    """Parse 'CYCLE:KEYS,...' into {cycle: frozenset(keys)}."""
    schedule: Dict[int, FrozenSet[int]] = {}
    if not text.strip():
        return schedule
    for item in text.split(','):
        item = item.strip()
        cycle_text, sep, keys_text = item.partition(':')
        if not sep:
            raise KeyScheduleError(f"missing ':' in key schedule entry {item!r}")
        try:
            cycle = int(cycle_text, 0)
            keys = frozenset(int(ch, 16) for ch in keys_text.strip())
        except ValueError:
            raise KeyScheduleError(f"bad key schedule entry {item!r}") from None
        if cycle < 0:
            raise KeyScheduleError(f"negative cycle in {item!r}")
        schedule[cycle] = keys
    return schedule


class HeadlessHost:
    """Callable host hook: host(emu) runs before every fetch."""

    def __init__(self,
                 cycles_per_second: int = 0,
                 key_schedule: Optional[Dict[int, FrozenSet[int]]] = None,
                 on_frame: Optional[FrameCallback] = None,
                 clock: Callable[[], float] = time.perf_counter,
                 sleep: Callable[[float], None] = time.sleep):
        self.interval = 1.0 / cycles_per_second if cycles_per_second > 0 else None
        self.key_schedule = dict(key_schedule or {})
        self.on_frame = on_frame
        self._clock = clock
        self._sleep = sleep
        self._next_deadline: Optional[float] = None

        self.cycle = 0
        self.frames = 0
        self.stop_requested = False

    def request_stop(self):
        self.stop_requested = True

    def __call__(self, emu) -> bool:
        if self.stop_requested:
            return False

        held = self.key_schedule.get(self.cycle)
        if held is not None:
            emu.keypad.set_state(held)
            log.debug("cycle %d: keys held %s", self.cycle,
                      ''.join(f"{k:X}" for k in sorted(held)) or '-')

        if emu.display.dirty:
            self.frames += 1
            if self.on_frame is not None:
                self.on_frame(emu.display)
            emu.display.dirty = False

        self._throttle()
        self.cycle += 1
        return True

    def _throttle(self):
        if self.interval is None:
            return
        now = self._clock()
        if self._next_deadline is None:
            self._next_deadline = now
        delay = self._next_deadline - now
        if delay > 0:
            self._sleep(delay)
        self._next_deadline = max(self._next_deadline, now) + self.interval
