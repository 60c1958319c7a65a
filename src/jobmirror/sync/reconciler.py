"""Brings the local store into agreement with a full upstream catalog snapshot.

One run:
  - takes the sync lock, so two runs never overlap
  - opens a ledger entry
  - fetches every catalog page sequentially; any failure aborts before a single write
  - inserts, updates and expires jobs inside one store transaction
  - closes the ledger entry with the counts, or with the error before re-raising it
"""

import math
import os
import socket
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from loguru import logger

from jobmirror.schema import SyncResult, UpstreamJob
from jobmirror.storage import JobStore, RunLedger
from jobmirror.storage.ledger import error_message
from jobmirror.sync.changes import changed_fields
from jobmirror.upstream import UpstreamClient
from jobmirror.utils import RateLimiter
from jobmirror.utils.timestamps import to_iso_utc, utc_now


class Reconciler:
    """Sole writer of jobs and sync runs."""

    def __init__(
        self,
        store: JobStore,
        client: UpstreamClient,
        *,
        page_size: int = 20,
        rate_limiter: RateLimiter | None = None,
        lock_stale_after: timedelta = timedelta(minutes=30),
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._client = client
        self._ledger = RunLedger(store)
        self._page_size = page_size
        self._rate_limiter = rate_limiter or RateLimiter(delay=0)
        self._lock_stale_after = lock_stale_after
        self._clock = clock
        self._holder = f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"

    async def run_sync(self) -> SyncResult:
        """Run one full sync.
        Raises:
            SyncInProgressError if another run holds the lock (no ledger entry is written)
            UpstreamError if any catalog page could not be fetched
            StoreError if the reconcile transaction failed and was rolled back
        """
        with (
            logger.contextualize(component="sync"),
            self._store.sync_lock(self._holder, stale_after=self._lock_stale_after, now=self._clock()),
        ):
            run_id = self._ledger.start(self._clock())
            logger.info(f"Sync run {run_id} started")
            try:
                items, skipped = await self._fetch_catalog()
                result = self._reconcile(items, self._clock(), skipped=skipped)
            except BaseException as e:
                self._ledger.finish_failed(run_id, e, self._clock())
                logger.error(f"Sync run {run_id} failed: {error_message(e)}")
                raise
            self._ledger.finish_ok(run_id, result, self._clock())

            logger.info(
                f"Sync run {run_id} finished | fetched: {result.fetched} | new: {result.new}"
                f" | updated: {result.updated} | expired: {result.expired}"
            )
        return result

    async def _fetch_catalog(self) -> tuple[list[UpstreamJob], int]:
        """Fetch every page reported by page 1's total count, strictly in order.

        Returns the usable items and the number of received items dropped for lacking an id.
        """
        first = await self._client.fetch_catalog_page(1, self._page_size)
        pages = max(1, math.ceil(first.total_count / self._page_size))
        items = list(first.items)
        skipped = first.skipped
        for page in range(2, pages + 1):
            await self._rate_limiter.wait()
            result = await self._client.fetch_catalog_page(page, self._page_size)
            items.extend(result.items)
            skipped += result.skipped

        received = len(items) + skipped
        if received != first.total_count:
            logger.warning(f"Catalog reported {first.total_count} jobs but {pages} pages held {received}")
        logger.info(f"Fetched {received} jobs across {pages} pages ({skipped} without an id)")
        return items, skipped

    def _reconcile(self, items: list[UpstreamJob], now: datetime, *, skipped: int = 0) -> SyncResult:
        now_iso = to_iso_utc(now)
        result = SyncResult(fetched=len(items) + skipped)
        seen: set[int] = set()

        with self._store.sync_session() as session:
            for item in items:
                incoming = item.to_content()
                seen.add(incoming.job_primary_id)

                existing = session.get_content(incoming.job_primary_id)
                if existing is None:
                    session.insert_job(incoming, now_iso)
                    result.new += 1
                    continue

                if changes := changed_fields(existing, incoming):
                    logger.debug(f"Job {incoming.job_primary_id} changed: {', '.join(changes)}")
                    session.update_job(incoming, now_iso)
                    result.updated += 1
                else:
                    session.touch_job(incoming.job_primary_id, incoming.view_count, now_iso)

            if seen:
                result.expired = session.expire_unseen(seen)

        return result
