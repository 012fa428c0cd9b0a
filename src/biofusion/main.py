"""Command-line entrypoint — fuse modality records from a JSON file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from biofusion.config import get_settings
from biofusion.fusion.errors import FusionError
from biofusion.fusion.registry import available_strategies, build_strategy
from biofusion.logger import setup_logging
from biofusion.models import ModalityRecord

_RECORDS = TypeAdapter(list[ModalityRecord])


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="biofusion",
        description="Uncertainty-weighted multi-modal fusion.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── fuse ──────────────────────────────────────────────────
    fuse_parser = sub.add_parser(
        "fuse",
        help="Fuse a JSON list of modality records and print the result.",
    )
    fuse_parser.add_argument("file", help="JSON file with the records, or '-' for stdin.")
    fuse_parser.add_argument("--strategy", default=None)
    fuse_parser.add_argument("--missing", choices=("zero", "exclude"), default=None)

    # ── strategies ────────────────────────────────────────────
    sub.add_parser("strategies", help="List registered fusion strategies.")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    if args.command == "fuse":
        try:
            records = _RECORDS.validate_json(_read_input(args.file))
            strategy = build_strategy(
                args.strategy or settings.fusion_strategy,
                missing=args.missing or settings.fusion_missing,
            )
            result = strategy.fuse(records)
        except (OSError, ValidationError, ValueError, FusionError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            sys.exit(2)
        print(result.model_dump_json(indent=2))
    elif args.command == "strategies":
        for name in available_strategies():
            print(name)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
