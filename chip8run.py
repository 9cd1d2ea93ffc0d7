#!/usr/bin/env python3
"""
chip8run - headless CHIP-8 runner

Usage:
    python chip8run.py <rom.ch8> [--profile default|fast|test] [--cycles N]
                                 [--speed HZ] [--seed S] [--keys SPEC]
                                 [--trace] [-v] [--log-file PATH] [--dump-frame]

Runs a ROM without a window: key input comes from a scripted schedule,
and the final framebuffer plus register state are printed on exit.

Key schedule: comma-separated CYCLE:KEYS entries, KEYS as hex digits,
empty to release everything. "0:5,120:" holds key 5 until cycle 120.

Examples:
    python chip8run.py pong.ch8 --cycles 5000 --dump-frame
    python chip8run.py test_opcode.ch8 --profile fast --cycles 2000 --trace -vv
    python chip8run.py keypad.ch8 --keys 0:,500:A,520: --cycles 1000

Exit codes: 0 ok, 1 bad input, 2 internal error, 3 guest fault.
"""

import argparse
import logging
import sys

from chip8_vm import (
    __version__, Chip8Emulator, HeadlessHost, PROFILES, ProgramTooLarge,
    StopReason, parse_key_schedule,
)
from chip8_vm.host import KeyScheduleError
from chip8_vm.log import setup_logging

log = logging.getLogger('chip8_vm.cli')


def parse_int_arg(value: str) -> int:
    """Parse an integer that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.lower().startswith("0x"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8run",
        description="Headless CHIP-8 interpreter",
        epilog="Profiles: " + ", ".join(PROFILES.keys()),
    )
    parser.add_argument("rom", help="Raw CHIP-8 program image")
    parser.add_argument("--profile", default="default", choices=list(PROFILES.keys()),
                        help="Configuration preset (default: default)")
    parser.add_argument("--cycles", type=parse_int_arg, default=None,
                        help="Stop after N instructions")
    parser.add_argument("--speed", type=parse_int_arg, default=None,
                        help="Instructions per second, 0 = unthrottled")
    parser.add_argument("--seed", type=parse_int_arg, default=None,
                        help="Seed for the RND instruction")
    parser.add_argument("--keys", default="",
                        help="Scripted key schedule, e.g. 0:5,120:")
    parser.add_argument("--trace", action="store_true", default=None,
                        help="Trace every executed instruction (shown with -vv)")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase console verbosity (-v info, -vv debug + trace)")
    parser.add_argument("--log-file", default=None,
                        help="Also write the full log to this file")
    parser.add_argument("--dump-frame", action="store_true",
                        help="Print the final framebuffer as text")
    parser.add_argument("--version", action="version",
                        version=f"chip8run {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose == 0:
        level = logging.WARNING
    elif args.verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    setup_logging(console_level=level, log_file=args.log_file,
                  trace_to_console=args.verbose >= 2)

    try:
        config = PROFILES[args.profile].with_overrides(
            cycles_per_second=args.speed,
            max_cycles=args.cycles,
            seed=args.seed,
            trace=args.trace,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        schedule = parse_key_schedule(args.keys)
    except KeyScheduleError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    emu = Chip8Emulator(config)
    try:
        emu.load_file(args.rom)
    except FileNotFoundError:
        print(f"Error: File not found: {args.rom}", file=sys.stderr)
        return 1
    except ProgramTooLarge as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.rom}: {e}", file=sys.stderr)
        return 1

    host = HeadlessHost(cycles_per_second=config.cycles_per_second,
                        key_schedule=schedule)
    log.info("Running %s (profile %s, %s cycles/s)", args.rom, args.profile,
             config.cycles_per_second or "unthrottled")

    try:
        reason = emu.run(hook=host)
    except KeyboardInterrupt:
        reason = StopReason.HOST
    except Exception as e:
        print(f"Internal emulator error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2

    if args.dump_frame:
        print(emu.display.render_text())
    print(f"Stopped: {reason.value} after {emu.regs.cycles} cycles, {host.frames} frames")
    print(emu.regs.display())

    if emu.fault is not None:
        print(f"Fault: {emu.fault}", file=sys.stderr)
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
