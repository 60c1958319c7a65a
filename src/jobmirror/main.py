"""Command-line driver for the sync engine.

Commands:
  - sync:   run one sync against the upstream catalog; --watch repeats it on an interval
  - status: print database facts and the latest sync run
"""

import argparse
import asyncio
import json
import sys
import time
from datetime import timedelta

from loguru import logger

from jobmirror.config import settings
from jobmirror.exceptions import JobMirrorError
from jobmirror.schema import SyncResult
from jobmirror.storage import JobStore
from jobmirror.sync import Reconciler
from jobmirror.upstream import UpstreamClient
from jobmirror.utils import RateLimiter, setup_logger
from jobmirror.utils.timestamps import to_iso_utc, utc_now


def build_store() -> JobStore:
    return JobStore(settings.database_path, busy_timeout_ms=settings.busy_timeout_ms)


async def sync_once(store: JobStore) -> SyncResult:
    """One sync run with a fresh upstream client."""
    async with UpstreamClient(base_url=settings.upstream_base_url, timeout=settings.request_timeout) as client:
        reconciler = Reconciler(
            store,
            client,
            page_size=settings.page_size,
            rate_limiter=RateLimiter(delay=settings.page_delay),
            lock_stale_after=timedelta(minutes=settings.sync_lock_stale_minutes),
        )
        return await reconciler.run_sync()


async def sync_main(watch: bool = False, interval_minutes: int | None = None) -> None:
    """Sync once, or forever every *interval_minutes* when watching.

    In watch mode a failed run is logged and the loop carries on; the ledger already holds the error.
    """
    store = build_store()
    interval = max(1, interval_minutes or settings.sync_interval_minutes)
    if watch:
        logger.info(f"Watching: syncing every {interval} minutes")

    while True:
        started = time.monotonic()
        try:
            result = await sync_once(store)
        except JobMirrorError as e:
            if not watch:
                raise
            logger.error(f"Sync failed, next attempt in {interval} minutes: {e}")
        else:
            ms = round((time.monotonic() - started) * 1000)
            print(json.dumps({"at": to_iso_utc(utc_now()), "ms": ms, **result.model_dump()}, indent=2))

        if not watch:
            return
        await asyncio.sleep(interval * 60)


def status_main() -> None:
    print(build_store().info().model_dump_json(indent=2))


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="jobmirror",
        description="Mirror the alljobs catalog into a local SQLite store",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sync
    sync_parser = subparsers.add_parser("sync", help="Reconcile the local store with the upstream catalog")
    sync_parser.add_argument("--watch", action="store_true", help="Keep syncing on an interval")
    sync_parser.add_argument("--interval", type=int, help="Minutes between runs in --watch mode")

    # status
    subparsers.add_parser("status", help="Show database info and the last sync run")

    return parser.parse_args()


async def main(args: argparse.Namespace) -> None:
    """Main async entry point."""
    match args.command:
        case "sync":
            await sync_main(watch=args.watch, interval_minutes=args.interval)
        case "status":
            status_main()
        case _:
            logger.error("Unknown command. Use: sync or status")


def cli() -> None:
    """CLI entry point."""
    args = parse_args()
    setup_logger(settings.log_level)

    if not args.command:
        print("Please specify a command: sync or status")
        print("  Example: jobmirror sync --watch")
        sys.exit(1)

    try:
        asyncio.run(main(args))
    except JobMirrorError:
        logger.exception("jobmirror failed")
        sys.exit(1)


if __name__ == "__main__":
    cli()
