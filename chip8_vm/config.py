"""
CHIP-8 VM - Run Configuration

VMConfig holds the knobs a host needs to drive the interpreter:
  cycles_per_second  host throttle (0 = run unthrottled)
  max_cycles         stop after this many instructions (None = forever)
  seed               RNG seed for RND (None = nondeterministic)
  trace              record a per-instruction trace
  trace_depth        trace lines kept in memory (oldest dropped first)

PROFILES are named presets; the CLI starts from one and applies flag
overrides with VMConfig.with_overrides().
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional

DEFAULT_CYCLES_PER_SECOND = 700
DEFAULT_TRACE_DEPTH = 10_000


@dataclass(frozen=True)
class VMConfig:
    cycles_per_second: int = DEFAULT_CYCLES_PER_SECOND
    max_cycles: Optional[int] = None
    seed: Optional[int] = None
    trace: bool = False
    trace_depth: int = DEFAULT_TRACE_DEPTH

    def __post_init__(self):
        if self.cycles_per_second < 0:
            raise ValueError("cycles_per_second must be >= 0")
        if self.max_cycles is not None and self.max_cycles < 0:
            raise ValueError("max_cycles must be >= 0")
        if self.trace_depth < 1:
            raise ValueError("trace_depth must be >= 1")

    def with_overrides(self, **overrides) -> 'VMConfig':
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


PROFILES: Dict[str, VMConfig] = {
    'default': VMConfig(),
    'fast':    VMConfig(cycles_per_second=0),
    'test':    VMConfig(cycles_per_second=0, max_cycles=100_000, seed=0),
}
