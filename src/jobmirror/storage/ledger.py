"""Append-only audit log of sync runs."""

from datetime import datetime
from typing import TYPE_CHECKING

from jobmirror.schema import SyncResult, SyncRun
from jobmirror.utils.timestamps import to_iso_utc, utc_now

if TYPE_CHECKING:
    from jobmirror.storage.job_store import JobStore

MAX_ERROR_LENGTH = 2000


def error_message(err: BaseException) -> str:
    """Readable, bounded error text for the ledger."""
    text = str(err) or type(err).__name__
    return text[:MAX_ERROR_LENGTH]


class RunLedger:
    """One `sync_runs` row per attempt, written in its own short transaction.

    Ledger writes never share the sync transaction, so a failed run stays recorded
    after its job writes are rolled back.
    """

    def __init__(self, store: "JobStore"):
        self._store = store

    def start(self, now: datetime | None = None) -> int:
        with self._store.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO sync_runs (started_at, ok) VALUES (?, 0)",
                (to_iso_utc(now or utc_now()),),
            )
            return int(cursor.lastrowid)

    def finish_ok(self, run_id: int, result: SyncResult, now: datetime | None = None) -> None:
        with self._store.connect() as conn:
            conn.execute(
                "UPDATE sync_runs SET finished_at = ?, ok = 1,"
                " fetched_jobs = ?, new_jobs = ?, updated_jobs = ?, expired_jobs = ?"
                " WHERE id = ?",
                (to_iso_utc(now or utc_now()), result.fetched, result.new, result.updated, result.expired, run_id),
            )

    def finish_failed(self, run_id: int, err: BaseException, now: datetime | None = None) -> None:
        with self._store.connect() as conn:
            conn.execute(
                "UPDATE sync_runs SET finished_at = ?, ok = 0, error = ? WHERE id = ?",
                (to_iso_utc(now or utc_now()), error_message(err), run_id),
            )

    def last_run(self) -> SyncRun | None:
        with self._store.connect() as conn:
            row = conn.execute("SELECT * FROM sync_runs ORDER BY id DESC LIMIT 1").fetchone()
        return SyncRun.model_validate(dict(row)) if row else None

    def history(self, limit: int | None = None) -> list[SyncRun]:
        """All runs, newest first."""
        with self._store.connect() as conn:
            stmt = "SELECT * FROM sync_runs ORDER BY id DESC"
            if limit is not None:
                stmt += f" LIMIT {int(limit)}"
            rows = conn.execute(stmt).fetchall()
        return [SyncRun.model_validate(dict(r)) for r in rows]
