"""Command-line entrypoint — replay recorded samples or inspect settings."""

from __future__ import annotations

import argparse
import csv
import json
import sys
from pathlib import Path
from typing import Iterator

import structlog

from sensorhub_affect.affect.pipeline import AffectPipeline
from sensorhub_affect.config import get_settings
from sensorhub_affect.logger import setup_logging
from sensorhub_affect.models import AccelerationSample, RotationSample

logger = structlog.get_logger(__name__)

_COLUMNS = ("timestamp", "x", "y", "z")


class ReplayError(Exception):
    """Raised when a replay file cannot be read."""


def read_samples(path: Path, channel: str) -> Iterator[AccelerationSample | RotationSample]:
    """Yield samples from a CSV file with ``timestamp,x,y,z`` columns."""
    model = RotationSample if channel == "rotation" else AccelerationSample
    try:
        with path.open(newline="", encoding="utf-8") as fh:
            reader = csv.DictReader(fh)
            missing = [c for c in _COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise ReplayError(f"{path}: missing columns {', '.join(missing)}")
            for line_no, row in enumerate(reader, start=2):
                try:
                    yield model(**{c: float(row[c]) for c in _COLUMNS})
                except (TypeError, ValueError) as exc:
                    raise ReplayError(f"{path}:{line_no}: invalid row ({exc})") from exc
    except OSError as exc:
        raise ReplayError(f"{path}: {exc.strerror or exc}") from exc


def _replay(args: argparse.Namespace) -> int:
    pipeline = AffectPipeline.from_settings(get_settings())
    process = pipeline.process_rotation if args.channel == "rotation" else pipeline.process
    count = 0
    try:
        for sample in read_samples(Path(args.file), args.channel):
            update = process(sample)  # type: ignore[arg-type]
            print(update.model_dump_json(exclude={"features"} if args.quiet_features else None))
            count += 1
    except ReplayError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logger.info("replay.finished", file=args.file, samples=count)
    if args.snapshot:
        print(pipeline.snapshot().model_dump_json())
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="sensorhub-affect",
        description="Rule-based affective-state inference from phone motion sensors.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── replay ────────────────────────────────────────────────
    replay_parser = sub.add_parser("replay", help="Replay a CSV of samples through the pipeline.")
    replay_parser.add_argument("file", help="CSV file with timestamp,x,y,z columns.")
    replay_parser.add_argument("--channel", choices=("accel", "rotation"), default="accel")
    replay_parser.add_argument("--snapshot", action="store_true", help="Print a final snapshot.")
    replay_parser.add_argument(
        "--quiet-features", action="store_true", help="Omit feature vectors from the output."
    )

    # ── config ────────────────────────────────────────────────
    sub.add_parser("config", help="Print the effective settings as JSON.")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    if args.command == "replay":
        sys.exit(_replay(args))
    elif args.command == "config":
        print(json.dumps(settings.model_dump(mode="json"), indent=2))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
