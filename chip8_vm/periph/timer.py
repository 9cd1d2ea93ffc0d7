"""
CHIP-8 VM - Delay / Sound Timers

Two independent 8-bit countdown counters:
  DT  delay timer  - read back by programs (LD Vx, DT) for pacing
  ST  sound timer  - the host plays a tone while it is non-zero

Both count down at 60 Hz of wall-clock time, not per instruction, since
instruction throughput is whatever the host throttles it to. Each timer
keeps a 1/60 s schedule starting from when it was loaded and drops by
exactly one per update once the next slot is due. After a gap longer
than one period the schedule restarts from now. A zero timer stays at
zero.

The clock is injectable; tests drive it by hand.
"""

import time
from typing import Callable, Optional

TIMER_HZ = 60
TIMER_PERIOD = 1.0 / TIMER_HZ

Clock = Callable[[], float]


class CountdownTimer:
    """One 60 Hz countdown counter."""

    __slots__ = ('name', '_value', '_last_tick')

    def __init__(self, name: str, now: float = 0.0):
        self.name = name
        self._value = 0
        self._last_tick = now

    @property
    def value(self) -> int:
        return self._value

    def set(self, value: int, now: float):
        """Load a new count. Restarts the 1/60 s pacing window."""
        self._value = value & 0xFF
        self._last_tick = now

    def tick(self, now: float) -> bool:
        """Decrement once if a full period has elapsed. Returns True if it did."""
        if self._value == 0:
            self._last_tick = now
            return False
        if now - self._last_tick < TIMER_PERIOD:
            return False
        self._value -= 1
        self._last_tick += TIMER_PERIOD
        if now - self._last_tick >= TIMER_PERIOD:
            self._last_tick = now
        return True

    def reset(self, now: float):
        self._value = 0
        self._last_tick = now


class TimerPeripheral:
    """Delay + sound timer pair sharing one clock."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock: Clock = clock or time.monotonic
        now = self.clock()
        self.delay = CountdownTimer('DT', now)
        self.sound = CountdownTimer('ST', now)

    def set_delay(self, value: int):
        self.delay.set(value, self.clock())

    def set_sound(self, value: int):
        self.sound.set(value, self.clock())

    @property
    def sound_active(self) -> bool:
        """True while the host should be playing the tone."""
        return self.sound.value > 0

    def update(self):
        """Advance both timers against the current clock reading.

        Called once per emulator cycle.
        """
        now = self.clock()
        self.delay.tick(now)
        self.sound.tick(now)

    def reset(self):
        """Reset timer state."""
        now = self.clock()
        self.delay.reset(now)
        self.sound.reset(now)
