"""
CHIP-8 VM - Timer Tests

Timers are paced by wall-clock time, so every test drives a fake clock
by hand instead of sleeping.
"""

from chip8_vm import Chip8Emulator
from chip8_vm.periph.timer import CountdownTimer, TimerPeripheral, TIMER_PERIOD


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float):
        self.t += dt


class TestCountdownTimer:

    def test_zero_timer_never_decrements(self):
        timer = CountdownTimer('DT')
        for i in range(10):
            assert not timer.tick(i * 1.0)
        assert timer.value == 0

    def test_needs_full_period(self):
        timer = CountdownTimer('DT')
        timer.set(3, now=0.0)
        assert not timer.tick(TIMER_PERIOD / 2)
        assert timer.value == 3
        assert timer.tick(TIMER_PERIOD * 1.01)
        assert timer.value == 2

    def test_one_step_per_tick_even_after_long_gap(self):
        timer = CountdownTimer('DT')
        timer.set(10, now=0.0)
        assert timer.tick(5.0)
        assert timer.value == 9

    def test_holds_60hz_when_polled_between_periods(self):
        timer = CountdownTimer('DT')
        timer.set(255, now=0.0)
        # polled every 7.3 ms for just under one second
        for k in range(1, 137):
            timer.tick(k * 0.0073)
        assert timer.value == 255 - 59

    def test_schedule_restarts_after_long_gap(self):
        timer = CountdownTimer('DT')
        timer.set(10, now=0.0)
        assert timer.tick(5.0)
        assert not timer.tick(5.0 + TIMER_PERIOD / 2)
        assert timer.tick(5.0 + TIMER_PERIOD * 1.01)
        assert timer.value == 8

    def test_set_masks_to_byte(self):
        timer = CountdownTimer('ST')
        timer.set(0x1FF, now=0.0)
        assert timer.value == 0xFF

    def test_set_restarts_window(self):
        timer = CountdownTimer('DT')
        timer.set(5, now=0.0)
        timer.set(5, now=0.015)
        assert not timer.tick(0.02)
        assert timer.value == 5


class TestTimerPeripheral:

    def test_independent_timers(self):
        clock = FakeClock()
        timers = TimerPeripheral(clock)
        timers.set_delay(2)
        timers.set_sound(5)
        for _ in range(4):
            clock.advance(0.02)
            timers.update()
        assert timers.delay.value == 0
        assert timers.sound.value == 1
        assert timers.sound_active

    def test_sound_inactive_at_zero(self):
        timers = TimerPeripheral(FakeClock())
        assert not timers.sound_active


class TestTimerInstructions:

    def _delay_program(self):
        return bytes([
            0x60, 0x0A,  # $200 LD V0, 10
            0xF0, 0x15,  # $202 LD DT, V0
            0xF1, 0x07,  # $204 LD V1, DT
            0x12, 0x04,  # $206 JP 0x204
        ])

    def test_delay_counts_down_to_zero_and_stays(self):
        clock = FakeClock()
        emu = Chip8Emulator(clock=clock)
        emu.load_program(self._delay_program())
        emu.step()
        emu.step()
        assert emu.timers.delay.value == 10

        # 7 ms per cycle: 0.42 timer periods per cycle
        for cycle in range(1, 24):
            clock.t = cycle * 0.007
            emu.step()
            assert emu.timers.delay.value == 10 - (cycle * 42) // 100

        for _ in range(50):
            clock.advance(0.007)
            emu.step()
            assert emu.timers.delay.value == 0
        assert emu.regs.V[1] == 0

    def test_timer_independent_of_instruction_count(self):
        clock = FakeClock()
        emu = Chip8Emulator(clock=clock)
        emu.load_program(self._delay_program())
        emu.run(max_cycles=1000)
        assert emu.timers.delay.value == 10
        assert emu.regs.V[1] == 10

    def test_ld_st(self):
        clock = FakeClock()
        emu = Chip8Emulator(clock=clock)
        emu.load_program(bytes([0x65, 0x03, 0xF5, 0x18, 0x12, 0x04]))
        emu.step()
        emu.step()
        assert emu.timers.sound.value == 3
        assert emu.timers.sound_active
        for _ in range(3):
            clock.advance(0.02)
            emu.step()
        assert not emu.timers.sound_active
