"""LinkedIn URL builder and actor input.

Pure functions, no network dependency.
"""

from typing import Any
from urllib.parse import quote_plus, urlencode

from src.core.schemas import SearchQuery

SEARCH_BASE = "https://www.linkedin.com/jobs/search/"
REMOTE_WORKPLACE_CODE = "2"

# --- Mapping dicts (URL concern) ---

JOB_TYPE_MAP: dict[str, str] = {
    "full-time": "F",
    "part-time": "P",
    "contract": "C",
    "internship": "I",
}

# 1=Internship 2=Entry 3=Associate 4=Mid-Senior 5=Director 6=Executive
EXPERIENCE_LEVEL_MAP: dict[str, str] = {
    "entry": "2",
    "mid": "3,4",
    "senior": "4,5",
    "lead": "5,6",
}

DATE_POSTED_MAP: dict[str, str] = {
    "24h": "r86400",
    "week": "r604800",
    "month": "r2592000",
}


def build_url(query: SearchQuery) -> str:
    """Build a LinkedIn jobs search URL from a query.

    Remote-only searches use ``Remote`` as location and the remote workplace
    filter. A non-zero offset becomes the ``start`` parameter so continuation
    batches scrape the next slice of results.
    """
    params: dict[str, str] = {"keywords": query.keywords}

    location = "Remote" if query.remote_only else query.location
    if location:
        params["location"] = location

    # "all" has no code and adds no filter
    for name, value, mapping in (
        ("f_JT", query.employment_type, JOB_TYPE_MAP),
        ("f_E", query.experience_level, EXPERIENCE_LEVEL_MAP),
        ("f_TPR", query.date_posted, DATE_POSTED_MAP),
    ):
        if value in mapping:
            params[name] = mapping[value]

    if query.remote_only:
        params["f_WT"] = REMOTE_WORKPLACE_CODE

    if query.offset > 0:
        params["start"] = str(query.offset)

    return f"{SEARCH_BASE}?{urlencode(params, quote_via=quote_plus)}"


def build_run_input(query: SearchQuery) -> dict[str, Any]:
    """Actor input: one search URL, capped at the batch size."""
    return {"urls": [build_url(query)], "maxItems": query.batch_size}

