"""Core data models for the job aggregation engine."""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ProviderId = Literal["linkedin", "workday", "careerone"]
EmploymentType = Literal["full-time", "part-time", "contract", "internship"]
EmploymentFilter = Literal["full-time", "part-time", "contract", "internship", "all"]
ExperienceFilter = Literal["entry", "mid", "senior", "lead", "all"]
DatePostedFilter = Literal["24h", "week", "month", "all"]
PollStatus = Literal["pending", "running", "succeeded", "failed", "aborted"]
OutcomeStatus = Literal["success", "cancelled", "quota_exceeded"]

PROVIDERS: tuple[str, ...] = ("linkedin", "workday", "careerone")
EMPLOYMENT_TYPES: tuple[str, ...] = ("full-time", "part-time", "contract", "internship")
TERMINAL_POLL_STATUSES: frozenset[str] = frozenset({"succeeded", "failed", "aborted"})

UNBOUNDED = "all"
MAX_BATCH_SIZE = 50
DEFAULT_RESULT_LIMIT = 25
DEFAULT_KEYWORDS = "developer"

REQUEST_FILTERS: dict[str, tuple[str, ...]] = {
    "employment_type": (*EMPLOYMENT_TYPES, UNBOUNDED),
    "experience_level": ("entry", "mid", "senior", "lead", UNBOUNDED),
    "date_posted": ("24h", "week", "month", UNBOUNDED),
}


def _parse_offset(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


class SearchQuery(BaseModel):
    """An immutable search request.

    A finite ``result_limit`` is always clamped to [1, 50]; ``"all"`` means
    unbounded and is served 50 records at a time.
    """

    model_config = ConfigDict(frozen=True)

    keywords: str
    location: str = ""
    employment_type: EmploymentFilter = "all"
    experience_level: ExperienceFilter = "all"
    date_posted: DatePostedFilter = "all"
    remote_only: bool = False
    provider: ProviderId = "linkedin"
    result_limit: int | Literal["all"] = DEFAULT_RESULT_LIMIT
    offset: int = Field(default=0, ge=0)

    @field_validator("keywords")
    @classmethod
    def keywords_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "keywords must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("location")
    @classmethod
    def strip_location(cls, v: str) -> str:
        return v.strip()

    @field_validator("result_limit", mode="before")
    @classmethod
    def clamp_limit(cls, v: Any) -> int | str:
        if isinstance(v, str):
            text = v.strip().lower()
            if text == UNBOUNDED:
                return UNBOUNDED
            try:
                v = int(text)
            except ValueError:
                return DEFAULT_RESULT_LIMIT
        if isinstance(v, bool) or not isinstance(v, int) or v == 0:
            return DEFAULT_RESULT_LIMIT
        return min(max(v, 1), MAX_BATCH_SIZE)

    @property
    def is_unbounded(self) -> bool:
        return self.result_limit == UNBOUNDED

    @property
    def batch_size(self) -> int:
        """Records requested from a provider in one call (never above 50)."""
        if isinstance(self.result_limit, int):
            return self.result_limit
        return MAX_BATCH_SIZE

    def with_offset(self, offset: int) -> "SearchQuery":
        return self.model_copy(update={"offset": offset})

    @classmethod
    def from_request(cls, params: Mapping[str, Any]) -> "SearchQuery":
        """Build a query from the caller-facing request shape.

        Accepts ``{keywords, location?, employment_type?, experience_level?,
        date_posted?, remote?, limit, source, offset?}`` with string values,
        as they arrive from a query string. Unknown filter values mean
        ``all``, an unknown source means LinkedIn, and a missing or
        malformed offset means 0.
        """
        remote = params.get("remote", False)
        if isinstance(remote, str):
            remote = remote.strip().lower() == "true"

        source = str(params.get("source") or "").strip().lower()
        data: dict[str, Any] = {
            "keywords": str(params.get("keywords") or "").strip() or DEFAULT_KEYWORDS,
            "location": str(params.get("location") or ""),
            "remote_only": bool(remote),
            "provider": source if source in PROVIDERS else "linkedin",
            "result_limit": params.get("limit") or str(DEFAULT_RESULT_LIMIT),
            "offset": _parse_offset(params.get("offset")),
        }
        for key, allowed in REQUEST_FILTERS.items():
            value = str(params.get(key) or "").strip().lower()
            data[key] = value if value in allowed else UNBOUNDED
        return cls.model_validate(data)


class Job(BaseModel):
    """A canonical, provider-agnostic job record."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    company: str
    location: str
    description: str
    requirements: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    salary_range: str = "Not specified"
    employment_type: EmploymentType = "full-time"
    posted_date: str
    apply_url: str = "#"
    source: str


class PollState(BaseModel):
    """Mutable state of one asynchronous provider run.

    Owned by a single PollOrchestrator call; never shared between runs.
    """

    run_id: str
    dataset_id: str
    status: PollStatus = "pending"
    attempts_made: int = 0
    max_attempts: int
    target_count: int | None = None
    elapsed_s: float = 0.0
    early_stopped: bool = False
    timed_out: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_POLL_STATUSES


class CacheEntry(BaseModel):
    """Jobs stored under one query fingerprint."""

    jobs: list[Job] = Field(default_factory=list)
    cached_at: float

    def is_fresh(self, now: float, ttl_s: float) -> bool:
        return now - self.cached_at < ttl_s


class SearchOutcome(BaseModel):
    """Result of one logical search, including non-error terminal states."""

    status: OutcomeStatus = "success"
    jobs: list[Job] = Field(default_factory=list)
    source: str = "mock"
    offset: int = 0
    from_cache: bool = False
    is_fallback: bool = False
    has_more: bool = False
    remaining: int | None = None
    message: str = ""

    @property
    def total(self) -> int:
        return len(self.jobs)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_response(self) -> dict[str, Any]:
        """Render the caller-facing ``{success, jobs, total, source}`` shape."""
        return {
            "success": self.ok,
            "jobs": [job.model_dump() for job in self.jobs],
            "total": self.total,
            "source": self.source,
        }
