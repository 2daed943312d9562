# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

"""
Convert the output of lspci -nnvv (and optionally dmidecode) into a graph
of the pci topology, annotated with link speeds and widths, on standard
output.
"""

import argparse
from importlib import metadata
import sys

from . import collect, errors, output, topology


def read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


def slot_levels(arg: str) -> tuple:
    levels = tuple(l.strip() for l in arg.split(",") if l.strip())
    for l in levels:
        if l not in topology.SLOT_MATCH_LEVELS:
            raise argparse.ArgumentTypeError(f"invalid slot match level: {l}")
    if not levels:
        raise argparse.ArgumentTypeError("no slot match level")
    return levels


def warn(diagnostics):
    for diag in diagnostics:
        print(f"warning: {diag.kind}: {diag}", file=sys.stderr)


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="pcitopo")
    parser.add_argument(
        "lspci",
        metavar="LSPCI",
        nargs="?",
        default="-",
        help="""
        File containing the output of lspci -nnvv (default: standard input).
        """,
    )
    parser.add_argument(
        "-s",
        "--slots",
        metavar="DMIDECODE",
        help="""
        File containing the output of dmidecode, used to name the physical
        slots.
        """,
    )
    parser.add_argument(
        "-m",
        "--slot-match",
        metavar="LEVELS",
        type=slot_levels,
        default=",".join(topology.SLOT_MATCH_LEVELS),
        help="""
        Comma separated list of address match levels used to attach slot
        names to devices, most specific first (default: %(default)s).
        """,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {metadata.version('pcitopo')}",
        help="""
        Show version and exit.
        """,
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="""
        Do not report skipped or inconsistent records.
        """,
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="""
        Show debug info.
        """,
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=output.FORMATS.keys(),
        default=output.DEFAULT_FORMAT,
        help="""
        Output format (default: %(default)s).
        """,
    )
    args = parser.parse_args()
    try:
        lspci = read_input(args.lspci)
        dmidecode = None
        if args.slots is not None:
            dmidecode = read_input(args.slots)
        report = collect.parse_report(lspci, dmidecode, args.slot_match)
        output.render(report, args.format)
        if not args.quiet:
            warn(report.diagnostics)
    except BrokenPipeError:
        pass
    except Exception as e:
        if args.debug or isinstance(e, NotImplementedError):
            raise
        if not args.quiet and isinstance(e, errors.EmptyInput):
            warn(e.diagnostics)
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
