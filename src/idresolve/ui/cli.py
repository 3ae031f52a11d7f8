from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from idresolve.adapters.jsonl import read_entities, read_lookups, write_results
from idresolve.app import ingest_entities, initialise_store, reset_store, resolve
from idresolve.config import configure_logging
from idresolve.domain.model import Lookup, LookupStrategy, parse_identifier

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve identifiers to entities over time")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output, including rendered statements",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create or upgrade the store schema")
    subparsers.add_parser("reset", help="Delete every entity, identifier and link")

    ingest = subparsers.add_parser("ingest", help="Ingest entities from a JSON-lines file")
    ingest.add_argument("file", type=Path, help="JSON-lines file with one entity per line")
    ingest.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Number of entities written per transaction (defaults to config)",
    )
    ingest.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip the overlapping-interval check before writing",
    )

    lookup = subparsers.add_parser("lookup", help="Resolve identifiers to entities")
    source = lookup.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--identifier",
        action="append",
        metavar="TYPE=VALUE",
        help="Identifier to resolve; repeat for several",
    )
    source.add_argument(
        "--file",
        type=Path,
        help="JSON-lines file with one lookup per line",
    )
    lookup.add_argument(
        "--as-of",
        type=str,
        help="ISO-8601 timestamp (UTC) to resolve at; omit for current values",
    )
    lookup.add_argument(
        "--strategy",
        type=LookupStrategy,
        choices=list(LookupStrategy),
        default=LookupStrategy.BATCHED,
        help="Lookup strategy (default: %(default)s)",
    )
    lookup.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker count for the concurrent strategy (defaults to config)",
    )

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _build_lookups(args: argparse.Namespace) -> list[Lookup]:
    if args.file is not None:
        if args.as_of:
            raise ValueError("--as-of applies to --identifier only; put dates in the file")
        return read_lookups(args.file)
    as_of = _parse_iso_datetime(args.as_of) if args.as_of else None
    return [Lookup(parse_identifier(text), as_of) for text in args.identifier]


def _validate(args: argparse.Namespace) -> None:
    if getattr(args, "batch_size", None) is not None and args.batch_size < 1:
        raise ValueError("Batch size must be positive")
    if getattr(args, "workers", None) is not None and args.workers < 1:
        raise ValueError("Worker count must be at least 1")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    lookups: list[Lookup] = []
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(verbose=True, force=True)
        _validate(parsed_args)
        if parsed_args.command == "lookup":
            lookups = _build_lookups(parsed_args)
    except (OSError, ValueError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "init":
            initialise_store()
        elif parsed_args.command == "reset":
            removed = reset_store()
            log.info("Removed %s rows", removed)
        elif parsed_args.command == "ingest":
            entities = read_entities(parsed_args.file)
            result = ingest_entities(
                entities,
                batch_size=parsed_args.batch_size,
                validate=not parsed_args.no_validate,
            )
            log.info("Ingested %s entities in %s batches", result.stored, result.batches)
        elif parsed_args.command == "lookup":
            results = resolve(
                lookups,
                strategy=parsed_args.strategy,
                workers=parsed_args.workers,
            )
            written = write_results(results, sys.stdout)
            found = sum(1 for result in results if result.success)
            log.info("Wrote %s results (%s found)", written, found)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
