"""alljobs HTTP client: paginated catalog search and single-job public details.

Both calls are plain network I/O with a bounded timeout and no retries. Every
response is untyped JSON and is shape-checked before use; anything unexpected
is an UpstreamError.
"""
from types import MappingProxyType
from typing import Any, Self

import httpx
from loguru import logger
from pydantic import ValidationError

from jobmirror.exceptions import UpstreamError
from jobmirror.schema import CatalogPage, JobDetails, UpstreamJob

SEARCH_PATH = "/api/v1/published-jobs/search"
DETAILS_PATH = "/api/v1/govt-jobs/public-details"
DEFAULT_BASE_URL = "https://alljobs.teletalk.com.bd"


def _total_count(count: Any, fallback: int) -> int:
    """The envelope's `count` when it is a whole number (JSON may send `45.0`), else *fallback*."""
    if isinstance(count, bool):
        return fallback
    if isinstance(count, int):
        return count
    if isinstance(count, float) and count.is_integer():
        return int(count)
    return fallback


class UpstreamClient:
    """Async client for the alljobs API. Use as `async with UpstreamClient() as client:`."""

    HEADERS: MappingProxyType[str, str] = MappingProxyType({
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9",
    })

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 25.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={**self.HEADERS, "Referer": f"{self.base_url}/", "Origin": self.base_url},
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, *_: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        """GET a path and return the decoded JSON body.
        Raises:
            RuntimeError if not used as context manager
            UpstreamError on transport failure, timeout, non-2xx status or a non-JSON body
        """
        if not self._client:
            raise RuntimeError("Use 'async with UpstreamClient() as c:' context manager.")
        try:
            resp = await self._client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"alljobs request timed out after {self.timeout}s: {path}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"alljobs request failed: {e}") from e
        if not resp.is_success:
            raise UpstreamError(
                f"alljobs fetch failed: {resp.status_code} {resp.reason_phrase} {resp.text}"[:400]
            )
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"alljobs returned a non-JSON body for {path}") from e

    async def fetch_catalog_page(self, page: int, page_size: int) -> CatalogPage:
        """Fetch one page of the published-jobs catalog.
        Raises:
            UpstreamError if the request fails or the envelope has no `govtJobs` list
        """
        payload = await self._get_json(SEARCH_PATH, {"page": str(page), "limit": str(page_size)})
        if not isinstance(payload, dict) or not isinstance(payload.get("govtJobs"), list):
            raise UpstreamError("alljobs response shape unexpected: missing govtJobs array")

        items: list[UpstreamJob] = []
        skipped = 0
        for raw in payload["govtJobs"]:
            item_id = raw.get("job_primary_id") if isinstance(raw, dict) else None
            if not isinstance(item_id, int) or isinstance(item_id, bool):
                logger.warning(f"Skipping catalog item without a numeric job_primary_id on page {page}")
                skipped += 1
                continue
            try:
                items.append(UpstreamJob.model_validate(raw))
            except ValidationError as e:
                raise UpstreamError(f"alljobs catalog item {item_id} is malformed: {e}") from e

        total = _total_count(payload.get("count"), fallback=len(payload["govtJobs"]))
        logger.debug(f"Fetched catalog page {page}: {len(items)} items, {skipped} skipped, total {total}")
        return CatalogPage(items=items, total_count=total, skipped=skipped)

    async def fetch_job_details(self, job_primary_id: int) -> JobDetails:
        """Fetch the public details of one government job.
        Raises:
            UpstreamError if the request fails, statusCode is not 200 or `details` is absent
        """
        payload = await self._get_json(DETAILS_PATH, {"id": str(job_primary_id)})
        if not isinstance(payload, dict) or payload.get("statusCode") != 200 or not payload.get("details"):
            raise UpstreamError(f"alljobs public-details unexpected response for job {job_primary_id}")
        try:
            return JobDetails.model_validate(payload["details"])
        except ValidationError as e:
            raise UpstreamError(f"alljobs public-details for job {job_primary_id} are malformed: {e}") from e
