"""Command line entry point: `chip8vm ROM [options]`."""

from __future__ import annotations

import argparse
import logging
import sys

from .config import load_config
from .cpu import Chip8, load_rom
from .decoder import disassemble
from .errors import Chip8Error

log = logging.getLogger(__name__)


def init_logging(debug: bool = False, logfile: str | None = None) -> None:
    """Configure the root logger.

    Messages go to stderr, and to `logfile` as well when given. With
    debug=True every executed instruction is traced.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    lvl = logging.DEBUG if debug else logging.INFO
    root.setLevel(lvl)

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(logging.Formatter("%(levelname)5s %(message)s"))
    root.addHandler(ch)

    if logfile:
        fh = logging.FileHandler(logfile, mode="w", encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(levelname)s %(name)s:%(lineno)d %(message)s"))
        root.addHandler(fh)


def get_args(argv=None):
    parser = argparse.ArgumentParser(prog="chip8vm", description="Run a CHIP-8 ROM.")
    parser.add_argument("rom", help="input rom file")
    parser.add_argument("-c", "--config", help="YAML file with window/timing settings")
    parser.add_argument("-d", "--debug", action="store_true", help="trace every instruction")
    parser.add_argument("--log", metavar="FILE", help="also write the log to FILE")
    parser.add_argument(
        "--disassemble", action="store_true", help="print the ROM as assembly and exit"
    )
    return parser.parse_args(argv)


def print_listing(rom, out=None):
    out = out or sys.stdout
    for address, opcode, text in disassemble(rom):
        out.write(f"0x{address:03X}: {opcode:04X}  {text}\n")


def main(argv=None) -> int:
    args = get_args(argv)
    init_logging(debug=args.debug, logfile=args.log)

    try:
        config = load_config(args.config)
        rom = load_rom(args.rom)
        if args.disassemble:
            print_listing(rom)
            return 0
        vm = Chip8()
        vm.load(rom)
    except Chip8Error as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    # pyglet wants a display as soon as the window module is imported
    from . import window

    log.info("Loading ROM: %s", args.rom)
    window.run(vm, config)

    if vm.fault is not None:
        print(f"Emulation stopped: {vm.fault}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
