import json
from enum import IntEnum, StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from jobmirror.utils.timestamps import parse_timestamp, to_iso_utc


class JobType(IntEnum):
    government = 1
    private = 2


class SortMode(StrEnum):
    published = "published"
    deadline = "deadline"


class DigestKind(StrEnum):
    all = "all"
    computer = "computer"
    data_entry = "data_entry"


# ── Jobs ───────────────────────────────────────────────────────────────────────

class JobContent(BaseModel):
    """Content columns of a `jobs` row, as mapped from one upstream catalog item."""

    job_primary_id: int
    job_id: str
    job_title: str
    job_title_bn: str | None = None
    job_type: int
    vacancy: str
    vacancy_not_specific: bool
    application_site_url: str
    published_at: str
    deadline_at: str
    status: int
    created_at_source: str
    organization_id: int
    category_id: int
    recruiter_id: int
    job_location: str = ""
    salary: int = 0
    view_count: int = 0
    org_name: str
    org_name_bn: str | None = None
    short_name: str | None = None
    logo_path: str | None = None
    website: str | None = None
    short_code: str | None = None
    industry_type_id: int | None = None
    industry_title: str | None = None

    @property
    def row(self) -> dict[str, Any]:
        return self.model_dump(include=set(JobContent.model_fields))


class Job(JobContent):
    """A full `jobs` row including lifecycle columns."""

    is_active: bool
    first_seen_at: str
    last_seen_at: str
    last_changed_at: str


class UpstreamJob(BaseModel):
    """One item of the catalog search `govtJobs` array."""

    job_primary_id: int
    job_id: str
    job_title: str
    job_title_bn: str | None = None
    job_type: int
    vacancy: str = ""
    vacancy_not_specific: bool = False
    application_site_url: str
    published_date: str
    deadline_date: str
    status: int
    created_at: str
    organization_id: int
    category_id: int
    recruiter_id: int
    job_location: str = ""
    salary: int = 0
    view_count: int = 0
    org_name: str
    org_name_bn: str | None = None
    short_name: str | None = None
    logo: str | None = None
    website: str | None = None
    short_code: str | None = None
    industry_type_id: int | None = None
    industry_title: str | None = None

    @field_validator("vacancy", mode="before")
    @classmethod
    def vacancy_as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("vacancy_not_specific", mode="before")
    @classmethod
    def vacancy_flag(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("job_location", mode="before")
    @classmethod
    def location_or_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("salary", "view_count", mode="before")
    @classmethod
    def number_or_zero(cls, v: Any) -> Any:
        if v is None:
            return 0
        return int(v) if isinstance(v, float) else v

    @field_validator("published_date", "deadline_date", "created_at", mode="after")
    @classmethod
    def normalize_utc(cls, v: str) -> str:
        return to_iso_utc(parse_timestamp(v))

    def to_content(self) -> JobContent:
        return JobContent(
            job_primary_id=self.job_primary_id,
            job_id=self.job_id,
            job_title=self.job_title,
            job_title_bn=self.job_title_bn,
            job_type=self.job_type,
            vacancy=self.vacancy,
            vacancy_not_specific=self.vacancy_not_specific,
            application_site_url=self.application_site_url,
            published_at=self.published_date,
            deadline_at=self.deadline_date,
            status=self.status,
            created_at_source=self.created_at,
            organization_id=self.organization_id,
            category_id=self.category_id,
            recruiter_id=self.recruiter_id,
            job_location=self.job_location,
            salary=self.salary,
            view_count=self.view_count,
            org_name=self.org_name,
            org_name_bn=self.org_name_bn,
            short_name=self.short_name,
            logo_path=self.logo,
            website=self.website,
            short_code=self.short_code,
            industry_type_id=self.industry_type_id,
            industry_title=self.industry_title,
        )


class CatalogPage(BaseModel):
    items: list[UpstreamJob]
    total_count: int
    skipped: int = 0  # received items dropped for lacking a numeric id


# ── Details ────────────────────────────────────────────────────────────────────

class GovtOrganization(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    name_bn: str | None = None
    short_name: str | None = None
    logo: str | None = None
    website: str | None = None
    details: str | None = None


class JobDetails(BaseModel):
    """Upstream "public details" payload. Unknown keys are kept so the cached blob stays complete."""

    model_config = ConfigDict(extra="allow")

    id: int
    job_title: str | None = None
    job_title_bn: str | None = None
    job_id: str | None = None
    job_type: int | None = None
    vacancy: str | None = None
    gender: int | None = None
    min_age: int | None = None
    max_age: int | None = None
    application_site: str | None = None
    advertisement_file: str | None = None
    published_date: str | None = None
    deadline_date: str | None = None
    advertisement_no: str | None = None
    advertisement_published_date: str | None = None
    job_source: str | None = None
    vacancy_not_specific: bool | None = None
    view_count: int | None = None
    status: int | None = None
    job_utilities_govtorganization: GovtOrganization | None = None

    @field_validator("vacancy", mode="before")
    @classmethod
    def vacancy_as_text(cls, v: Any) -> Any:
        return v if v is None else str(v)


class CachedDetails(BaseModel):
    """A `job_details` row. `details` is None when the stored blob can't be parsed."""

    job_primary_id: int
    job_type: int
    details_json: str
    fetched_at: str
    advertisement_file: str | None = None
    advertisement_no: str | None = None
    advertisement_published_date: str | None = None
    application_site: str | None = None
    job_source: str | None = None
    min_age: int | None = None
    max_age: int | None = None
    gender: int | None = None
    view_count: int | None = None
    details: JobDetails | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Self:
        try:
            details = JobDetails.model_validate(json.loads(row["details_json"]))
        except (json.JSONDecodeError, TypeError, ValidationError):
            details = None
        return cls.model_validate({**row, "details": details})


# ── Sync runs ──────────────────────────────────────────────────────────────────

class SyncResult(BaseModel):
    fetched: int = 0
    new: int = 0
    updated: int = 0
    expired: int = 0


class SyncRun(BaseModel):
    id: int
    started_at: str
    finished_at: str | None = None
    ok: bool = False
    fetched_jobs: int = 0
    new_jobs: int = 0
    updated_jobs: int = 0
    expired_jobs: int = 0
    error: str | None = None

    @property
    def running(self) -> bool:
        return self.finished_at is None


# ── Queries ────────────────────────────────────────────────────────────────────

# Upper bounds keep bound parameters inside SQLite INTEGER and date arithmetic inside datetime range.
_SQLITE_INT_MAX = 2**63 - 1
_MAX_PAGE = _SQLITE_INT_MAX // 100
_MAX_EXPIRES_IN_DAYS = 36500


def _as_int(value: Any, *, default: int | None) -> int | None:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _as_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return default


class JobsQuery(BaseModel):
    """Filters for `query_jobs`. Invalid or out-of-range values are clamped to safe defaults."""

    page: int = 1
    limit: int = 20
    q: str = ""
    job_type: int | None = None
    organization_id: int | None = None
    computer_only: bool = False
    data_entry_only: bool = False
    active_only: bool = True
    posted_today: bool = False
    deadline_today: bool = False
    expires_in_days: int | None = None
    sort: SortMode = SortMode.published

    @field_validator("page", mode="before")
    @classmethod
    def clamp_page(cls, v: Any) -> int:
        return min(_MAX_PAGE, max(1, _as_int(v, default=1)))

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, v: Any) -> int:
        return min(100, max(1, _as_int(v, default=20)))

    @field_validator("q", mode="before")
    @classmethod
    def strip_q(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""

    @field_validator("job_type", "organization_id", mode="before")
    @classmethod
    def optional_int(cls, v: Any) -> int | None:
        value = _as_int(v, default=None)
        if value is None or abs(value) > _SQLITE_INT_MAX:
            return None
        return value

    @field_validator("expires_in_days", mode="before")
    @classmethod
    def positive_days(cls, v: Any) -> int | None:
        days = _as_int(v, default=None)
        return min(days, _MAX_EXPIRES_IN_DAYS) if days is not None and days > 0 else None

    @field_validator("computer_only", "data_entry_only", "posted_today", "deadline_today", mode="before")
    @classmethod
    def flag_off_by_default(cls, v: Any) -> bool:
        return _as_bool(v, default=False)

    @field_validator("active_only", mode="before")
    @classmethod
    def flag_on_by_default(cls, v: Any) -> bool:
        return _as_bool(v, default=True)

    @field_validator("sort", mode="before")
    @classmethod
    def known_sort(cls, v: Any) -> SortMode:
        try:
            return SortMode(v)
        except ValueError:
            return SortMode.published


class JobsPage(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    items: list[Job]


class StoreInfo(BaseModel):
    db_path: str
    exists: bool
    size: int
    mtime: str | None
    total_jobs: int
    active_jobs: int
    last_run: SyncRun | None
