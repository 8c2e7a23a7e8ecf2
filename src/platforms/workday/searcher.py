"""Workday actor input builder.

Pure functions, no network dependency.
"""

from typing import Any

from src.core.schemas import SearchQuery


def build_run_input(query: SearchQuery) -> dict[str, Any]:
    """Actor input for a synchronous Workday search.

    The actor always starts from the first result, so a continuation batch
    asks for ``offset + batch_size`` items and the caller reads the window
    starting at ``offset``.
    """
    body: dict[str, Any] = {
        "position": query.keywords,
        "maxItems": query.offset + query.batch_size,
    }
    location = "Remote" if query.remote_only else query.location
    if location:
        body["location"] = location
    return body
