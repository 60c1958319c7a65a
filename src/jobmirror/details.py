"""Lazy cache of upstream job details, used by detail pages and chat digests."""

from collections.abc import Iterable

from loguru import logger

from jobmirror.exceptions import NotFoundError, StoreError, UpstreamError
from jobmirror.schema import Job, JobDetails, JobType
from jobmirror.storage import JobStore
from jobmirror.upstream import UpstreamClient


async def ensure_details(
    store: JobStore,
    client: UpstreamClient,
    job_primary_id: int,
    *,
    refresh: bool = False,
) -> JobDetails:
    """Return cached details for a job, fetching and caching them on first use.

    Cached rows have no expiry; pass refresh=True to re-fetch explicitly.
    Raises:
        NotFoundError if the job is not in the store
        UpstreamError if the live fetch fails
    """
    job = store.get_job_by_primary_id(job_primary_id)
    if job is None:
        raise NotFoundError(f"job {job_primary_id} not found")

    if not refresh:
        cached = store.get_cached_details(job_primary_id)
        if cached is not None and cached.details is not None:
            return cached.details

    live = await client.fetch_job_details(job_primary_id)
    store.upsert_details(job_primary_id, live, job_type=job.job_type)
    return live


async def collect_details(
    store: JobStore,
    client: UpstreamClient,
    jobs: Iterable[Job],
) -> dict[int, JobDetails]:
    """Details for every government job in *jobs*, keyed by primary id.

    Public details exist only for government jobs. A job whose lookup fails is
    logged and left out; the others are still collected.
    """
    details: dict[int, JobDetails] = {}
    with logger.contextualize(component="details"):
        for job in jobs:
            if job.job_type != JobType.government:
                continue
            try:
                details[job.job_primary_id] = await ensure_details(store, client, job.job_primary_id)
            except (UpstreamError, NotFoundError, StoreError) as e:
                logger.warning(f"Details unavailable for job {job.job_primary_id}: {e}")
    return details
