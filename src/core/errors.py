"""Error taxonomy for provider calls, quota gating, and cancellation.

Provider errors never escape an adapter: they are logged and turned into an
empty job list. QuotaExceeded and SearchCancelled are caller-visible and
become outcome statuses in the search service.
"""


class ProviderError(Exception):
    """Base class for failures talking to a scraping provider."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"[{provider}] {message}")
        self.provider = provider


class NotConfigured(ProviderError):
    """The provider credential is missing."""


class ProviderRejected(ProviderError):
    """The provider answered a submission with a client error (4xx)."""

    def __init__(self, provider: str, message: str, status_code: int = 0) -> None:
        super().__init__(provider, message)
        self.status_code = status_code


class ProviderTimeout(ProviderError):
    """The attempt budget or the client-side timeout was exhausted."""


class ProviderUnavailable(ProviderError):
    """Transport error or server-side failure (5xx)."""


class QuotaExceeded(Exception):
    """The caller has no remaining search units."""

    def __init__(self, caller_id: str, message: str = "") -> None:
        super().__init__(message or f"Quota exhausted for '{caller_id}'")
        self.caller_id = caller_id


class SearchCancelled(Exception):
    """The search was superseded or cancelled by its caller."""
