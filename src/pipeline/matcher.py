"""Filter chain for canonical jobs.

Used in two places:
  - DeduplicationFilter keeps a result set unique by Job.id; a stateful
    instance also drops ids already delivered in earlier batches.
  - The query filters (keyword, location, remote, employment type,
    experience level, date posted) narrow the built-in fallback data.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date

from src.core.schemas import Job, SearchQuery

logger = logging.getLogger(__name__)

# A filter is a callable that takes jobs and returns a subset.
Filter = Callable[[list[Job]], list[Job]]

DATE_POSTED_DAYS: dict[str, int] = {"24h": 1, "week": 7, "month": 30}


class DeduplicationFilter:
    """Remove duplicates by Job.id.

    Stateful: tracks seen ids across calls within the same filter instance.
    """

    def __init__(self, seen_ids: Iterable[str] = ()) -> None:
        self._seen: set[str] = set(seen_ids)

    def __call__(self, jobs: list[Job]) -> list[Job]:
        result: list[Job] = []
        for job in jobs:
            if job.id not in self._seen:
                self._seen.add(job.id)
                result.append(job)
        deduped = len(jobs) - len(result)
        if deduped:
            logger.debug("DeduplicationFilter: removed %d duplicates", deduped)
        return result


class KeywordFilter:
    """Keep jobs whose title, company, description or skills mention the keywords."""

    def __init__(self, keywords: str) -> None:
        self._keyword = keywords.lower().strip()

    def __call__(self, jobs: list[Job]) -> list[Job]:
        if not self._keyword:
            return jobs
        return [j for j in jobs if self._matches(j)]

    def _matches(self, job: Job) -> bool:
        fields = (job.title, job.company, job.description)
        if any(self._keyword in f.lower() for f in fields):
            return True
        return any(self._keyword in s.lower() for s in job.skills)


class LocationFilter:
    """Keep jobs whose location contains the requested text (or 'remote')."""

    def __init__(self, location: str, remote_only: bool) -> None:
        self._needle = "remote" if remote_only else location.lower().strip()

    def __call__(self, jobs: list[Job]) -> list[Job]:
        if not self._needle:
            return jobs
        return [j for j in jobs if self._needle in j.location.lower()]


class EmploymentTypeFilter:
    def __init__(self, employment_type: str) -> None:
        self._type = employment_type

    def __call__(self, jobs: list[Job]) -> list[Job]:
        if self._type == "all":
            return jobs
        return [j for j in jobs if j.employment_type == self._type]


class ExperienceLevelFilter:
    """Title-based approximation of experience level."""

    def __init__(self, level: str) -> None:
        self._level = level

    def __call__(self, jobs: list[Job]) -> list[Job]:
        if self._level == "all":
            return jobs
        return [j for j in jobs if self._matches(j.title.lower())]

    def _matches(self, title: str) -> bool:
        if self._level == "entry":
            return any(w in title for w in ("junior", "entry", "intern"))
        if self._level == "mid":
            return not any(w in title for w in ("senior", "junior", "intern"))
        if self._level == "senior":
            return "senior" in title or "lead" in title
        if self._level == "lead":
            return any(w in title for w in ("lead", "manager", "director"))
        return True


class DatePostedFilter:
    """Keep jobs posted within the window ending at ``today``."""

    def __init__(self, date_posted: str, today: date | None = None) -> None:
        self._max_days = DATE_POSTED_DAYS.get(date_posted)
        self._today = today or date.today()

    def __call__(self, jobs: list[Job]) -> list[Job]:
        if self._max_days is None:
            return jobs
        return [j for j in jobs if self._age_days(j) <= self._max_days]

    def _age_days(self, job: Job) -> int:
        try:
            posted = date.fromisoformat(job.posted_date)
        except ValueError:
            return 0
        return (self._today - posted).days


def query_filters(query: SearchQuery, today: date | None = None) -> list[Filter]:
    """Build the filter chain that mirrors a query's filters."""
    return [
        KeywordFilter(query.keywords),
        LocationFilter(query.location, query.remote_only),
        EmploymentTypeFilter(query.employment_type),
        ExperienceLevelFilter(query.experience_level),
        DatePostedFilter(query.date_posted, today),
    ]


def run_filter_chain(jobs: list[Job], filters: list[Filter]) -> list[Job]:
    """Apply filters in order, returning the surviving jobs."""
    result = jobs
    for f in filters:
        result = f(result)
    return result
