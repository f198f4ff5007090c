"""Command line entry point: ``linkwise reconcile`` and ``linkwise lookup``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, timedelta
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from linkwise.adapters.sqlalchemy import StoreContext
from linkwise.app import lookup_entity, reconcile_enquiries
from linkwise.config import ConfigurationError, configure_logging, get_expansion_limits
from linkwise.domain.enquiries import DEFAULT_FETCH_LIMIT, EnquiryFetchRequest
from linkwise.domain.errors import ParseError
from linkwise.domain.time_windows import TimeWindow
from linkwise.domain.timestamps import parse_timestamp
from linkwise.ui.payload import reconciliation_payload
from linkwise.ui.text import render_closure

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from types import FrameType

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return parsed


def _positive_float(value: str) -> float:
    parsed = float(value)
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return parsed


def _non_negative_float(value: str) -> float:
    parsed = float(value)
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return parsed


def _utc_timestamp(value: str) -> datetime:
    """ISO-8601 argument; a value without an offset is read as UTC."""

    try:
        parsed = parse_timestamp(value, field="timestamp")
    except ParseError as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO-8601 timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkwise",
        description="Reconcile and look up enquiry records across the legacy and current stores",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at debug level")
    commands = parser.add_subparsers(dest="command", required=True)

    reconcile = commands.add_parser(
        "reconcile",
        help="Merge recent enquiries from both stores and print the JSON payload",
    )
    reconcile.add_argument(
        "--limit",
        type=_positive_int,
        default=DEFAULT_FETCH_LIMIT,
        help="Maximum number of enquiries to fetch per store (default: %(default)s)",
    )
    window = reconcile.add_argument_group("time window")
    window.add_argument("--start", type=_utc_timestamp, help="Earliest enquiry timestamp")
    window.add_argument("--end", type=_utc_timestamp, help="Latest enquiry timestamp")
    window.add_argument(
        "--lookback-hours",
        type=_non_negative_float,
        help="Only enquiries from the last N hours before --end (or now)",
    )

    lookup = commands.add_parser(
        "lookup",
        help="Resolve every record linked to a reference, id, email or name",
    )
    lookup.add_argument("seed", help="Instruction ref, prospect id, email, display number or name")
    lookup.add_argument(
        "--max-passes",
        type=_positive_int,
        help="Maximum number of expansion passes (defaults to config)",
    )
    lookup.add_argument(
        "--deadline",
        type=_positive_float,
        help="Overall time budget in seconds (defaults to config)",
    )
    return parser


def _time_window(args: argparse.Namespace) -> TimeWindow | None:
    lookback = timedelta(hours=args.lookback_hours) if args.lookback_hours is not None else None
    window = TimeWindow(start=args.start, end=args.end, lookback=lookback)
    if window.is_unbounded:
        return None
    window.resolve()
    return window


def _reconcile(args: argparse.Namespace, window: TimeWindow | None) -> str:
    with StoreContext.from_config() as context:
        reconciliation = reconcile_enquiries(
            context,
            EnquiryFetchRequest(limit=args.limit),
            window=window,
        )
    payload = reconciliation_payload(reconciliation.result, reconciliation.warnings)
    return json.dumps(payload, indent=2) + "\n"


def _lookup(args: argparse.Namespace) -> str:
    limits = get_expansion_limits().with_overrides(
        max_passes=args.max_passes,
        deadline_seconds=args.deadline,
    )
    with StoreContext.from_config() as context:
        result = lookup_entity(context, args.seed, limits)
    return render_closure(result)


def main(argv: Sequence[str] | None = None) -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else sys.argv[1:])
    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    window: TimeWindow | None = None
    if args.command == "reconcile":
        try:
            window = _time_window(args)
        except ValueError as exc:
            parser.error(str(exc))

    try:
        output = _reconcile(args, window) if args.command == "reconcile" else _lookup(args)
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("%s failed", args.command)
        sys.exit(1)
    sys.stdout.write(output)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    log.info("Interrupted")
    sys.exit(130)


def run() -> None:
    """Console script entry point."""
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
