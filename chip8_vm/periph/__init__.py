from .display import Display, WIDTH, HEIGHT
from .keypad import Keypad, KEYMAP
from .timer import CountdownTimer, TimerPeripheral, TIMER_HZ
