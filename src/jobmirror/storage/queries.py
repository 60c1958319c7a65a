"""Read-side filtering, search, sorting and pagination over the jobs table.

Nothing here writes or caches; every result is computed from the store's current state.
"""

import math
from datetime import datetime, timedelta
from typing import Any

from jobmirror.schema import DigestKind, Job, JobsPage, JobsQuery, SortMode
from jobmirror.storage.job_store import JobStore
from jobmirror.utils.timestamps import local_day_range, to_iso_utc, utc_now

_ORDER_BY = {
    SortMode.published: "published_at DESC",
    SortMode.deadline: "deadline_at ASC",
}

# SQLite LIKE is case-insensitive for ASCII.
_COMPUTER_CLAUSE = ("job_title LIKE ?", ["%computer%"])
_DATA_ENTRY_CLAUSE = ("(job_title LIKE ? OR job_title LIKE ?)", ["%data entry%", "%data-entry%"])


def _where(query: JobsQuery, now: datetime) -> tuple[str, list[Any]]:
    where: list[str] = ["1=1"]
    params: list[Any] = []

    if query.active_only:
        where.append("is_active = 1")

    if query.computer_only:
        clause, values = _COMPUTER_CLAUSE
        where.append(clause)
        params.extend(values)

    if query.data_entry_only:
        clause, values = _DATA_ENTRY_CLAUSE
        where.append(clause)
        params.extend(values)

    if query.job_type is not None:
        where.append("job_type = ?")
        params.append(query.job_type)

    if query.organization_id is not None:
        where.append("organization_id = ?")
        params.append(query.organization_id)

    if query.q:
        where.append("(job_title LIKE ? OR org_name LIKE ? OR job_id LIKE ? OR IFNULL(short_name, '') LIKE ?)")
        params.extend([f"%{query.q}%"] * 4)

    if query.posted_today:
        start, end = local_day_range(now)
        where.append("published_at >= ? AND published_at < ?")
        params.extend([start, end])

    if query.deadline_today:
        start, end = local_day_range(now)
        where.append("deadline_at >= ? AND deadline_at < ?")
        params.extend([start, end])

    if query.expires_in_days is not None:
        where.append("deadline_at >= ? AND deadline_at <= ?")
        params.extend([to_iso_utc(now), to_iso_utc(now + timedelta(days=query.expires_in_days))])

    return " AND ".join(where), params


def query_jobs(store: JobStore, query: JobsQuery | None = None, *, now: datetime | None = None) -> JobsPage:
    """Return one page of jobs matching *query*, plus the total match count."""
    query = query or JobsQuery()
    where_sql, params = _where(query, now or utc_now())
    offset = (query.page - 1) * query.limit

    with store.connect() as conn:
        total = conn.execute(f"SELECT COUNT(1) FROM jobs WHERE {where_sql}", params).fetchone()[0]
        rows = conn.execute(
            f"SELECT * FROM jobs WHERE {where_sql}"
            f" ORDER BY {_ORDER_BY[query.sort]}, job_primary_id"
            " LIMIT ? OFFSET ?",
            [*params, query.limit, offset],
        ).fetchall()

    return JobsPage(
        page=query.page,
        limit=query.limit,
        total=total,
        total_pages=max(1, math.ceil(total / query.limit)),
        items=[Job.model_validate(dict(r)) for r in rows],
    )


def list_active_jobs(store: JobStore, kind: DigestKind = DigestKind.all, limit: int = 25) -> list[Job]:
    """Active jobs for a chat digest, soonest deadline first."""
    clauses = {
        DigestKind.all: None,
        DigestKind.computer: _COMPUTER_CLAUSE,
        DigestKind.data_entry: _DATA_ENTRY_CLAUSE,
    }
    stmt = "SELECT * FROM jobs WHERE is_active = 1"
    params: list[Any] = []
    if extra := clauses[DigestKind(kind)]:
        stmt += f" AND {extra[0]}"
        params.extend(extra[1])
    stmt += " ORDER BY deadline_at ASC, job_primary_id LIMIT ?"
    params.append(min(100, max(1, limit)))
    with store.connect() as conn:
        rows = conn.execute(stmt, params).fetchall()
    return [Job.model_validate(dict(r)) for r in rows]


def list_expiring_jobs(store: JobStore, days: int = 7, limit: int = 50, *, now: datetime | None = None) -> list[Job]:
    """Active jobs whose deadline falls within the next *days* days (1 to 30), soonest first."""
    days = min(30, days) if days > 0 else 7
    now = now or utc_now()
    with store.connect() as conn:
        rows = conn.execute(
            "SELECT * FROM jobs WHERE is_active = 1 AND deadline_at >= ? AND deadline_at <= ?"
            " ORDER BY deadline_at ASC, job_primary_id LIMIT ?",
            (to_iso_utc(now), to_iso_utc(now + timedelta(days=days)), min(100, max(1, limit))),
        ).fetchall()
    return [Job.model_validate(dict(r)) for r in rows]
