# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from greentrace.app import clear_record_cache, load_records, read_cache_status
from greentrace.config import configure_logging
from greentrace.domain.model import RecordKind, RecordStatus
from greentrace.domain.reconciliation import count_by_status, partition_by_status

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from greentrace.domain.model import Record
    from greentrace.domain.record_cache import CacheStatus

log = logging.getLogger(__name__)

_KIND_CHOICES = [kind.value for kind in RecordKind]
_STATUS_CHOICES = [status.value for status in RecordStatus]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track GreenTrace mint and exchange requests")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    records = subparsers.add_parser("records", help="List an account's requests")
    records.add_argument("--account", type=str, required=True, help="Requester address")
    records.add_argument(
        "--kind",
        choices=_KIND_CHOICES,
        default=RecordKind.MINT.value,
        help="Request kind (default: %(default)s)",
    )
    records.add_argument(
        "--force",
        action="store_true",
        help="Drop the cache and re-read contract state",
    )
    records.add_argument(
        "--listen",
        type=float,
        metavar="SECONDS",
        help="Listen for chain events for this many seconds before printing",
    )
    records.add_argument(
        "--status",
        choices=_STATUS_CHOICES,
        help="Only print records in this displayed status",
    )

    cache_status = subparsers.add_parser("cache-status", help="Show cached record lists")
    cache_status.add_argument("--account", type=str, required=True, help="Requester address")
    cache_status.add_argument("--kind", choices=_KIND_CHOICES, help="Limit to one request kind")

    clear_cache = subparsers.add_parser("clear-cache", help="Drop cached record lists")
    clear_cache.add_argument("--account", type=str, required=True, help="Requester address")
    clear_cache.add_argument("--kind", choices=_KIND_CHOICES, help="Limit to one request kind")

    return parser.parse_args(list(argv))


def _listen_window(seconds: float | None) -> timedelta | None:
    if seconds is None:
        return None
    if seconds <= 0:
        raise ValueError("--listen must be a positive number of seconds")
    return timedelta(seconds=seconds)


def _selected_kinds(value: str | None) -> tuple[RecordKind, ...]:
    return (RecordKind(value),) if value else tuple(RecordKind)


def _format_record(record: Record) -> str:
    created = record.created_at.strftime("%Y-%m-%d %H:%M")
    asset = f"#{record.secondary_asset_id}" if record.secondary_asset_id else "-"
    marker = "*" if record.is_provisional else " "
    return f"{marker}{record.id:>6}  {record.status:<9}  {created}  {asset:>8}  {record.title}"


def _print_records(records: Sequence[Record], status: str | None) -> None:
    counts = count_by_status(records)
    selected = partition_by_status(records)[RecordStatus(status)] if status else list(records)
    for record in selected:
        print(_format_record(record))
    print(
        f"{counts.total} total: {counts.pending} pending, {counts.approved} approved, "
        f"{counts.rejected} rejected, {counts.minted} minted, {counts.exchanged} exchanged"
    )


def _format_cache_status(kind: RecordKind, status: CacheStatus) -> str:
    if not status.has_cache:
        return f"{kind}: no cache"
    state = "valid" if status.cache_valid else "expired"
    written = status.written_at.isoformat() if status.written_at else "unknown"
    return f"{kind}: {status.cache_count} records, {state}, written {written}"


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(argv if argv is not None else sys.argv[1:])
        listen = _listen_window(getattr(parsed_args, "listen", None))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        configure_logging(level=logging.DEBUG if parsed_args.verbose else None)
        if parsed_args.command == "records":
            records = asyncio.run(
                load_records(
                    parsed_args.account,
                    kind=RecordKind(parsed_args.kind),
                    force=parsed_args.force,
                    listen=listen,
                )
            )
            _print_records(records, parsed_args.status)
        elif parsed_args.command == "cache-status":
            statuses = asyncio.run(
                read_cache_status(parsed_args.account, kinds=_selected_kinds(parsed_args.kind))
            )
            for kind, status in statuses.items():
                print(_format_cache_status(kind, status))
        elif parsed_args.command == "clear-cache":
            asyncio.run(
                clear_record_cache(parsed_args.account, kinds=_selected_kinds(parsed_args.kind))
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception as e:  # noqa: BLE001
        log.debug("Command %s failed", parsed_args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
