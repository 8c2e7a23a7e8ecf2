"""CareerOne actor input builder.

Pure functions, no network dependency. CareerOne is AU/NZ only and the
actor's geocoder rejects most locations, so location is never sent.
"""

from typing import Any

from src.core.schemas import SearchQuery

JOB_TYPES_MAP: dict[str, str] = {
    "full-time": "Full time",
    "part-time": "Part time",
    "internship": "Casual/Vacation",
}

# The actor treats dayRange=0 as "posted in the last 0 days", so omit it instead
DAY_RANGE_MAP: dict[str, int] = {"24h": 1, "week": 7, "month": 30}

# Markers of the actor's location lookup failure in an error body
LOCATION_ERROR_MARKERS: tuple[str, ...] = (
    "IndexError",
    "list index out of range",
    "get_best_fit_location",
)


def build_run_input(query: SearchQuery) -> dict[str, Any]:
    """Actor input for a synchronous CareerOne search."""
    body: dict[str, Any] = {
        "searchTerm": query.keywords,
        "maxResults": query.offset + query.batch_size,
        "sortBy": "Date Posted",
        "allowSurrounding": True,
    }

    day_range = DAY_RANGE_MAP.get(query.date_posted)
    if day_range:
        body["dayRange"] = day_range

    job_type = JOB_TYPES_MAP.get(query.employment_type)
    if job_type:
        body["jobTypes"] = [job_type]
    if query.employment_type == "contract":
        body["contractTypes"] = ["Contract"]

    return body


def is_location_error(detail: str) -> bool:
    return any(marker in detail for marker in LOCATION_ERROR_MARKERS)
