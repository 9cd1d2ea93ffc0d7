"""
CHIP-8 VM - Logging Setup

Library modules only create named loggers (chip8_vm.emu, chip8_vm.trace,
...). Hosts call setup_logging() once to attach handlers:

  - console: rich RichHandler at console_level
  - file:    optional plain-text handler capturing everything (DEBUG+)

Per-instruction trace lines go to chip8_vm.trace at DEBUG, so they only
show up on the console with -vv or in the log file.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

ROOT_LOGGER = 'chip8_vm'


def setup_logging(
    console_level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    trace_to_console: bool = False,
) -> logging.Logger:
    """Configure and return the package root logger.

    Safe to call more than once; existing handlers are replaced.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # ── Console handler ──
    ch = RichHandler(
        level=console_level,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    if not trace_to_console:
        ch.addFilter(lambda record: not record.name.startswith(ROOT_LOGGER + '.trace'))
    logger.addHandler(ch)

    # ── File handler: captures everything ──
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding='utf-8')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)

    logger.debug("Logger initialized (console level %s)",
                 logging.getLevelName(console_level))
    return logger
