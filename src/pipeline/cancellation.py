"""Cancellation tokens: one live token per caller context.

Starting a new search for a caller cancels that caller's previous token.
Code holding a token checks it after every suspension point and before any
cache write.
"""

import logging

from src.core.errors import SearchCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    """A one-way flag shared by a search and whoever may supersede it."""

    def __init__(self, label: str = "") -> None:
        self._label = label
        self._cancelled = False
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self._reason = reason
            logger.debug("Token '%s' cancelled: %s", self._label, reason)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise SearchCancelled(self._reason or "cancelled")


class CancellationRegistry:
    """Tracks the single outstanding token per caller.

    Usage::

        registry = CancellationRegistry()
        token = registry.begin("user-1")   # cancels any earlier token
        ...
        registry.finish("user-1", token)
    """

    def __init__(self) -> None:
        self._tokens: dict[str, CancellationToken] = {}

    def begin(self, caller_id: str) -> CancellationToken:
        """Cancel the caller's previous token and issue a new one."""
        previous = self._tokens.get(caller_id)
        if previous is not None:
            previous.cancel("superseded by a newer search")
        token = CancellationToken(label=caller_id)
        self._tokens[caller_id] = token
        return token

    def cancel(self, caller_id: str, reason: str = "cancelled by caller") -> bool:
        """Cancel the caller's live token. Returns False if there was none."""
        token = self._tokens.pop(caller_id, None)
        if token is None:
            return False
        token.cancel(reason)
        return True

    def finish(self, caller_id: str, token: CancellationToken) -> None:
        """Forget ``token`` if it is still the caller's current one."""
        if self._tokens.get(caller_id) is token:
            del self._tokens[caller_id]

    def current(self, caller_id: str) -> CancellationToken | None:
        return self._tokens.get(caller_id)
