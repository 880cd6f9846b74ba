"""Run one reminder sweep, and optionally the retention purge, from the command line."""

from __future__ import annotations

import argparse
from datetime import datetime

import anyio
from sqlalchemy.exc import SQLAlchemyError

from event_finder.config import get_settings
from event_finder.infrastructure.logging_config import configure_logging
from event_finder.services import build_services


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the sweep."""

    parser = argparse.ArgumentParser(
        description="Send due event reminders once, outside the API process.",
    )
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="ISO timestamp to sweep at (default: current time). Naive values are UTC.",
    )
    parser.add_argument(
        "--purge",
        action="store_true",
        help="Also delete notifications older than the retention period.",
    )
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> None:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    services = build_services(settings)
    try:
        result = await services.reminder_scheduler.run_once(args.now)
        print(
            "Reminder sweep finished:\n"
            f"  Offsets: {', '.join(f'{h}h' for h in result.offsets)}\n"
            f"  Events matched: {result.events_matched}\n"
            f"  Created: {result.created}\n"
            f"  Skipped: {result.skipped}\n"
            f"  Failed: {result.failures}"
        )
        if args.purge:
            retention = await services.run_retention_purge()
            print(
                f"Purged {retention.notifications_deleted} notification(s) created before "
                f"{retention.cutoff.isoformat()}"
            )
        await services.dispatcher.drain()
    finally:
        services.close()


def main() -> None:
    """Run the sweep using the configured database and email provider."""

    args = parse_args()
    try:
        anyio.run(_run, args)
    except SQLAlchemyError as exc:
        raise SystemExit(f"Database error during the reminder sweep: {exc}") from exc


if __name__ == "__main__":
    main()
