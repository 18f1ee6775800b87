#!/usr/bin/env python3
"""Generate the opcode length tables used by the x86 length disassembler."""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from lentables import DatabaseError, InstructionDatabase, write_artifacts


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "database",
        type=Path,
        nargs="?",
        default=Path("test.json"),
        help="Instruction database dump with an 'Instructions' list",
    )
    parser.add_argument(
        "--fat-out",
        type=Path,
        default=Path("generated_table.h"),
        help="Destination of the dense 256 entry per map table",
    )
    parser.add_argument(
        "--thin-out",
        type=Path,
        default=Path("generated_thin_table.h"),
        help="Destination of the range compressed table",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Trace every range picked by the compressor",
    )
    return parser.parse_args()


def main() -> None:
    start_time = time.perf_counter()
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.database.exists():
        raise SystemExit(f"missing input file: {args.database}")
    try:
        database = InstructionDatabase.load(args.database)
    except DatabaseError as exc:
        raise SystemExit(f"invalid instruction database: {exc}") from exc

    tables = write_artifacts(database, args.fat_out, args.thin_out)
    print(f"fat table written to {args.fat_out}")
    print(f"thin table written to {args.thin_out} ({sum(tables.thin.rule_counts())} ranges)")

    total_time = time.perf_counter() - start_time
    print(f"total execution time: {total_time:.2f}s")


if __name__ == "__main__":
    main()
