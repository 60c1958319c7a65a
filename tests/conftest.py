from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest

from jobmirror.storage import JobStore
from jobmirror.upstream import UpstreamClient
from jobmirror.upstream.client import DETAILS_PATH, SEARCH_PATH

BASE_URL = "https://alljobs.test"


def _item(job_primary_id: int, **overrides: Any) -> dict[str, Any]:
    """A catalog item shaped like the upstream `govtJobs` entries."""
    item = {
        "job_primary_id": job_primary_id,
        "job_title": f"Assistant Programmer {job_primary_id}",
        "job_title_bn": None,
        "job_id": f"BPSC-{job_primary_id:05d}",
        "job_type": 1,
        "vacancy": "3",
        "vacancy_not_specific": False,
        "application_site_url": f"https://bpsc.teletalk.com.bd/apply/{job_primary_id}",
        "published_date": "2024-05-01T04:00:00.000Z",
        "deadline_date": "2024-06-01T11:59:00.000Z",
        "status": 1,
        "created_at": "2024-04-30T10:00:00.000Z",
        "organization_id": 7,
        "category_id": 2,
        "recruiter_id": 0,
        "job_location": "Dhaka",
        "salary": 0,
        "view_count": 10,
        "org_name": "Bangladesh Public Service Commission",
        "org_name_bn": None,
        "short_name": "BPSC",
        "logo": "logos/bpsc.png",
        "website": "https://bpsc.gov.bd",
        "short_code": "BPSC",
        "industry_type_id": None,
        "industry_title": None,
    }
    item.update(overrides)
    return item


class FakeCatalog:
    """In-memory alljobs API served to the client through httpx.MockTransport."""

    def __init__(self) -> None:
        self.items: list[dict[str, Any]] = []
        self.details: dict[int, dict[str, Any]] = {}
        self.count: Any = None
        self.failing_pages: set[int] = set()
        self.timeout_pages: set[int] = set()
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == SEARCH_PATH:
            page = int(request.url.params["page"])
            limit = int(request.url.params["limit"])
            if page in self.timeout_pages:
                raise httpx.ReadTimeout("timed out", request=request)
            if page in self.failing_pages:
                return httpx.Response(502, text="Bad Gateway")
            return httpx.Response(200, json={
                "status": "success",
                "statusCode": 200,
                "count": self.count if self.count is not None else len(self.items),
                "totalPrivateJob": 0,
                "govtJobs": self.items[(page - 1) * limit: page * limit],
            })
        if request.url.path == DETAILS_PATH:
            job_id = int(request.url.params["id"])
            if job_id not in self.details:
                return httpx.Response(200, json={"status": "error", "statusCode": 404, "message": "Not found"})
            return httpx.Response(200, json={"status": "success", "statusCode": 200, "details": self.details[job_id]})
        return httpx.Response(404)

    @property
    def catalog_pages_requested(self) -> list[int]:
        return [int(r.url.params["page"]) for r in self.requests if r.url.path == SEARCH_PATH]


class Clock:
    """Controllable replacement for utc_now."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(scope="session")
def make_item() -> Callable[..., dict[str, Any]]:
    return _item


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def store(tmp_path) -> JobStore:
    return JobStore(tmp_path / "jobs.db")


@pytest.fixture
async def client(catalog):
    async with UpstreamClient(base_url=BASE_URL, timeout=1.0, transport=httpx.MockTransport(catalog.handler)) as c:
        yield c


@pytest.fixture
def clock() -> Clock:
    return Clock(datetime(2024, 5, 10, 6, 0, tzinfo=UTC))
