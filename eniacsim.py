#!/usr/bin/env python3
"""
eniacsim — ENIAC Simulator command line
========================================

    eniacsim new     — Write a blank program document
    eniacsim show    — Print the machine panel for a program
    eniacsim run     — Load a program, run N steps, print / export the result
    eniacsim watch   — Run a program in real time (one step per interval)
    eniacsim points  — List the plugboard connection points

Usage:
    python eniacsim.py <command> [options]
    python eniacsim.py <command> --help

Examples:
    python eniacsim.py new -o blank.json
    python eniacsim.py run --set op1=1 --set addr2=1 --acc 1=5 --acc 2=7
    python eniacsim.py run adder.json --steps 10 --export after.json
    python eniacsim.py run --connect acc1:acc2 --steps 3
    python eniacsim.py watch adder.json --interval 0.5 --steps 20
"""

import argparse
import logging
import sys

from eniac_sim.config import RUN_INTERVAL_S
from eniac_sim import (
    __version__, ENIACEngine, IntervalDriver, ProgramImportError,
    connection_points, format_state, load_program, save_program,
    dumps_program, default_filename,
)

logger = logging.getLogger("eniacsim")


def setup_logging(verbose: int = 0, quiet: bool = False):
    """Console logging for the CLI. Library modules never configure handlers."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _parse_pair(text: str, sep: str, what: str):
    key, found, value = text.partition(sep)
    if not found or not key or not value:
        raise ValueError(f"bad {what} '{text}' (expected KEY{sep}VALUE)")
    return key.strip(), value.strip()


def build_engine(args) -> ENIACEngine:
    """Engine loaded from args.input (if any) with command-line overrides."""
    engine = ENIACEngine(highlight_delay=None)
    if getattr(args, "input", None):
        engine.import_program(load_program(args.input))
        logger.info(f"Loaded {args.input}")

    for item in getattr(args, "set", None) or []:
        sid, pos = _parse_pair(item, "=", "switch setting")
        if not engine.set_switch_position(sid, int(pos)):
            logger.warning(f"Switch setting '{item}' ignored")
    for item in getattr(args, "acc", None) or []:
        acc_id, value = _parse_pair(item, "=", "accumulator value")
        if not engine.set_accumulator_value(int(acc_id), int(value)):
            logger.warning(f"Accumulator value '{item}' ignored")
    for item in getattr(args, "connect", None) or []:
        source, target = _parse_pair(item, ":", "connection")
        if engine.add_connection(source, target) is None:
            logger.warning(f"Connection '{item}' ignored (duplicate)")
    return engine


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def cmd_new(args):
    doc = ENIACEngine(highlight_delay=None).export_program()
    out = args.output or default_filename()
    if out == "-":
        print(dumps_program(doc))
        return 0
    save_program(doc, out)
    print(f"Blank program -> {out}")
    return 0


def cmd_show(args):
    engine = build_engine(args)
    print(format_state(engine.get_snapshot()))
    return 0


def cmd_run(args):
    engine = build_engine(args)
    reason = engine.run(args.steps)
    engine.stop()
    print(format_state(engine.get_snapshot()))
    logger.info(f"Run ended: {reason.value}")

    if args.export:
        save_program(engine.export_program(), args.export)
        print(f"Program exported -> {args.export}")
    return 0


def cmd_watch(args):
    engine = build_engine(args)
    last = {"step": engine.get_snapshot().current_step}

    def on_change(state):
        if state.current_step == last["step"]:
            return
        last["step"] = state.current_step
        lit = [f"A{a.id:02d}={a.value}" for a in state.accumulators if a.is_active]
        print(f"step {state.current_step:5d}  cycle {state.cycle_count:4d}  "
              f"{' '.join(lit) or '-'}", flush=True)

    unsubscribe = engine.subscribe(on_change)
    driver = IntervalDriver(engine, interval=args.interval, max_steps=args.steps)
    try:
        with driver:
            engine.start()
            while not driver.join(timeout=0.2):
                pass
    except KeyboardInterrupt:
        print(f"\nStopped after {driver.steps} step(s).")
    finally:
        engine.stop()
        unsubscribe()

    print(format_state(engine.get_snapshot()))
    return 0


def cmd_points(args):
    for point_id, label in connection_points():
        print(f"  {point_id:22s} {label}")
    return 0


COMMANDS = {
    "new": cmd_new,
    "show": cmd_show,
    "run": cmd_run,
    "watch": cmd_watch,
    "points": cmd_points,
}


def _add_override_args(p):
    p.add_argument("--set", action="append", metavar="SWITCH=POS",
                   help="Set a switch position (repeatable), e.g. op1=1")
    p.add_argument("--acc", action="append", metavar="ID=VALUE",
                   help="Load an accumulator (repeatable), e.g. 1=5")
    p.add_argument("--connect", action="append", metavar="FROM:TO",
                   help="Plug in a cable (repeatable), e.g. acc1:acc2")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eniacsim",
        description="ENIAC Simulator — run and inspect plugboard programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"eniacsim {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Debug logging")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only log errors")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── new ──────────────────────────────────────────────────────────────
    p_new = sub.add_parser("new", help="Write a blank program document")
    p_new.add_argument("-o", "--output",
                       help="Output file, '-' for stdout (default: eniac-program-<date>.json)")

    # ── show ─────────────────────────────────────────────────────────────
    p_show = sub.add_parser("show", help="Print the machine panel for a program")
    p_show.add_argument("input", nargs="?", help="Program .json file")
    _add_override_args(p_show)

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run a program for a number of steps")
    p_run.add_argument("input", nargs="?", help="Program .json file (default: blank machine)")
    p_run.add_argument("--steps", type=int, default=1, help="Steps to execute (default: 1)")
    p_run.add_argument("--export", metavar="FILE", help="Export the resulting program")
    _add_override_args(p_run)

    # ── watch ────────────────────────────────────────────────────────────
    p_watch = sub.add_parser("watch", help="Run in real time, one step per interval")
    p_watch.add_argument("input", nargs="?", help="Program .json file")
    p_watch.add_argument("--interval", type=float, default=RUN_INTERVAL_S,
                         help=f"Seconds per step (default: {RUN_INTERVAL_S:g})")
    p_watch.add_argument("--steps", type=int, default=None,
                         help="Stop after N steps (default: until Ctrl+C)")
    _add_override_args(p_watch)

    # ── points ───────────────────────────────────────────────────────────
    sub.add_parser("points", help="List plugboard connection points")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.quiet)
    if not args.command:
        parser.print_help()
        return 0

    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except ProgramImportError as e:
        print(f"error: bad program document: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
