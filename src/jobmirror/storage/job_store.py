"""SQLite-backed store for mirrored jobs, cached job details and the sync lock."""

import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path

from loguru import logger

from jobmirror.exceptions import NotFoundError, StoreError, SyncInProgressError
from jobmirror.schema import CachedDetails, Job, JobContent, JobDetails, JobType, StoreInfo
from jobmirror.storage.DDL import _DDL, _PRAGMAS
from jobmirror.storage.ledger import RunLedger
from jobmirror.utils.timestamps import parse_timestamp, to_iso_utc, utc_now

_CONTENT_COLUMNS = tuple(JobContent.model_fields)

_INSERT_JOB = (
    f"INSERT INTO jobs ({', '.join(_CONTENT_COLUMNS)}, is_active, first_seen_at, last_seen_at, last_changed_at)"
    f" VALUES ({', '.join(':' + c for c in _CONTENT_COLUMNS)}, 1, :now, :now, :now)"
)

_UPDATE_JOB = (
    "UPDATE jobs SET "
    + ", ".join(f"{c} = :{c}" for c in _CONTENT_COLUMNS if c != "job_primary_id")
    + ", is_active = 1, last_seen_at = :now, last_changed_at = :now"
    " WHERE job_primary_id = :job_primary_id"
)

_TOUCH_JOB = (
    "UPDATE jobs SET view_count = ?, is_active = 1, last_seen_at = ?"
    " WHERE job_primary_id = ?"
)

_UPSERT_DETAILS = """
    INSERT INTO job_details (
        job_primary_id, job_type, details_json, fetched_at,
        advertisement_file, advertisement_no, advertisement_published_date,
        application_site, job_source, min_age, max_age, gender, view_count
    ) VALUES (
        :job_primary_id, :job_type, :details_json, :fetched_at,
        :advertisement_file, :advertisement_no, :advertisement_published_date,
        :application_site, :job_source, :min_age, :max_age, :gender, :view_count
    )
    ON CONFLICT(job_primary_id) DO UPDATE SET
        job_type = excluded.job_type,
        details_json = excluded.details_json,
        fetched_at = excluded.fetched_at,
        advertisement_file = excluded.advertisement_file,
        advertisement_no = excluded.advertisement_no,
        advertisement_published_date = excluded.advertisement_published_date,
        application_site = excluded.application_site,
        job_source = excluded.job_source,
        min_age = excluded.min_age,
        max_age = excluded.max_age,
        gender = excluded.gender,
        view_count = excluded.view_count
"""


class SyncSession:
    """Write primitives of one sync run, all sharing the session's single transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def get_content(self, job_primary_id: int) -> JobContent | None:
        row = self._conn.execute(
            "SELECT * FROM jobs WHERE job_primary_id = ?", (job_primary_id,)
        ).fetchone()
        return JobContent.model_validate(dict(row)) if row else None

    def insert_job(self, content: JobContent, now: str) -> None:
        self._conn.execute(_INSERT_JOB, {**content.row, "now": now})

    def update_job(self, content: JobContent, now: str) -> None:
        """Full content update. first_seen_at is left untouched."""
        self._conn.execute(_UPDATE_JOB, {**content.row, "now": now})

    def touch_job(self, job_primary_id: int, view_count: int, now: str) -> None:
        """Mark an unchanged job as seen, refreshing only its view count."""
        self._conn.execute(_TOUCH_JOB, (view_count, now, job_primary_id))

    def expire_unseen(self, seen_ids: Iterable[int]) -> int:
        """Deactivate every active job whose id is not in *seen_ids*. Returns the number expired."""
        self._conn.execute("CREATE TEMP TABLE IF NOT EXISTS seen_ids (id INTEGER PRIMARY KEY)")
        self._conn.execute("DELETE FROM seen_ids")
        self._conn.executemany("INSERT OR IGNORE INTO seen_ids (id) VALUES (?)", ((i,) for i in seen_ids))
        cursor = self._conn.execute(
            "UPDATE jobs SET is_active = 0"
            " WHERE is_active = 1 AND job_primary_id NOT IN (SELECT id FROM seen_ids)"
        )
        return cursor.rowcount


class JobStore:
    """SQLite store owning the jobs, job_details, sync_runs and sync_lock tables.

    Every public call opens its own short-lived connection with foreign keys enabled
    and the configured busy timeout, so readers wait on a writer instead of failing.
    """

    def __init__(self, db_path: Path, busy_timeout_ms: int = 5000):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._init_db()

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ------------------------------------------------------------------
    # Infrastructure
    # ------------------------------------------------------------------

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_ms)}")
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back on error.

        Raises StoreError for any sqlite3 failure.
        """
        conn = self._open()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(_PRAGMAS + _DDL)
        logger.debug(f"Store ready at {self._db_path}")

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def get_job_by_primary_id(self, job_primary_id: int) -> Job | None:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM jobs WHERE job_primary_id = ?", (job_primary_id,)
            ).fetchone()
        return Job.model_validate(dict(row)) if row else None

    @contextmanager
    def sync_session(self) -> Iterator[SyncSession]:
        """One atomic write transaction for a whole sync run.

        BEGIN IMMEDIATE takes the write lock up front. Either every insert, update
        and expiration of the session commits, or none of them does.
        Raises StoreError if the transaction fails.
        """
        conn = self._open()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield SyncSession(conn)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"sync transaction rolled back: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Job details cache
    # ------------------------------------------------------------------

    def get_cached_details(self, job_primary_id: int) -> CachedDetails | None:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM job_details WHERE job_primary_id = ?", (job_primary_id,)
            ).fetchone()
        return CachedDetails.from_row(dict(row)) if row else None

    def upsert_details(
        self,
        job_primary_id: int,
        details: JobDetails,
        *,
        job_type: int = JobType.government,
        fetched_at: datetime | None = None,
    ) -> CachedDetails:
        """Insert or overwrite the cached details of a job.

        Raises NotFoundError if the job is not in the store.
        """
        row = {
            "job_primary_id": job_primary_id,
            "job_type": int(job_type),
            "details_json": details.model_dump_json(exclude_unset=True),
            "fetched_at": to_iso_utc(fetched_at or utc_now()),
            "advertisement_file": details.advertisement_file,
            "advertisement_no": details.advertisement_no,
            "advertisement_published_date": details.advertisement_published_date,
            "application_site": details.application_site,
            "job_source": details.job_source,
            "min_age": details.min_age,
            "max_age": details.max_age,
            "gender": details.gender,
            "view_count": details.view_count,
        }
        with self.connect() as conn:
            exists = conn.execute(
                "SELECT 1 FROM jobs WHERE job_primary_id = ?", (job_primary_id,)
            ).fetchone()
            if not exists:
                raise NotFoundError(f"job {job_primary_id} not found")
            conn.execute(_UPSERT_DETAILS, row)
        logger.debug(f"Cached details for job {job_primary_id}")
        return CachedDetails.model_validate({**row, "details": details})

    # ------------------------------------------------------------------
    # Sync lock
    # ------------------------------------------------------------------

    @contextmanager
    def sync_lock(self, holder: str, *, stale_after: timedelta, now: datetime | None = None) -> Iterator[None]:
        """Hold the single sync lock row for the duration of the block.

        A lock older than *stale_after* is treated as left behind by a crashed run and taken over.
        Raises SyncInProgressError if another holder has a fresh lock.
        """
        now = now or utc_now()
        with self.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT holder, acquired_at FROM sync_lock WHERE id = 1").fetchone()
            if row:
                if parse_timestamp(row["acquired_at"]) > now - stale_after:
                    raise SyncInProgressError(
                        f"sync already running (holder {row['holder']} since {row['acquired_at']})"
                    )
                logger.warning(f"Taking over stale sync lock held by {row['holder']} since {row['acquired_at']}")
            conn.execute(
                "INSERT OR REPLACE INTO sync_lock (id, holder, acquired_at) VALUES (1, ?, ?)",
                (holder, to_iso_utc(now)),
            )
        try:
            yield
        finally:
            with self.connect() as conn:
                conn.execute("DELETE FROM sync_lock WHERE id = 1 AND holder = ?", (holder,))

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def info(self) -> StoreInfo:
        """Database file facts, job counts and the latest sync run."""
        with self.connect() as conn:
            row = conn.execute(
                "SELECT COUNT(1) AS total, COALESCE(SUM(is_active), 0) AS active FROM jobs"
            ).fetchone()
        path = self._db_path.resolve()
        stat = path.stat() if path.exists() else None
        return StoreInfo(
            db_path=str(path),
            exists=stat is not None,
            size=stat.st_size if stat else 0,
            mtime=to_iso_utc(datetime.fromtimestamp(stat.st_mtime, UTC)) if stat else None,
            total_jobs=row["total"],
            active_jobs=row["active"],
            last_run=RunLedger(self).last_run(),
        )
