"""Quota manager: per-caller search gate with plan tiers and token packs.

Quota state lives in SQLite. Included searches auto-reset when the date
changes; purchased tokens do not expire and are spent only once the day's
included searches are used up.
"""

import logging
import sqlite3
from dataclasses import dataclass

from src.core.config import QuotaConfig
from src.core.db import get_account, get_usage, increment_usage, upsert_account

logger = logging.getLogger(__name__)

JOB_SEARCH = "job-search"


@dataclass(frozen=True)
class DebitResult:
    """Outcome of a debit attempt."""

    allowed: bool
    remaining: int
    message: str


class QuotaManager:
    """Enforces per-caller search limits.

    Usage::

        qm = QuotaManager(conn, QuotaConfig())
        if qm.check_remaining("user-1") > 0:
            ...  # do search
            qm.debit("user-1")
    """

    def __init__(self, conn: sqlite3.Connection, config: QuotaConfig) -> None:
        self._conn = conn
        self._config = config

    def plan_of(self, caller_id: str) -> str:
        account = get_account(self._conn, caller_id)
        return account[0] if account else self._config.default_plan

    def tokens_of(self, caller_id: str) -> int:
        account = get_account(self._conn, caller_id)
        return account[1] if account else 0

    def included_remaining(self, caller_id: str, action: str = JOB_SEARCH) -> int | None:
        """Included units left today, or None when the action is unmetered."""
        if action != JOB_SEARCH:
            return None
        plan = self._config.plans.get(self.plan_of(caller_id))
        if plan is None:
            logger.debug("No quota plan for '%s' - allowing", caller_id)
            return None
        used = get_usage(self._conn, caller_id, action)
        return max(0, plan.searches_per_day - used)

    def check_remaining(self, caller_id: str, action: str = JOB_SEARCH) -> int:
        """Return how many more units the caller can spend (check only, no debit)."""
        included = self.included_remaining(caller_id, action)
        if included is None:
            return 999_999  # No limit configured
        remaining = included + self.tokens_of(caller_id)
        if remaining <= 0:
            logger.info("Quota reached for '%s' (%s plan)", caller_id, self.plan_of(caller_id))
        return remaining

    def debit(self, caller_id: str, action: str = JOB_SEARCH) -> DebitResult:
        """Spend one unit: an included search first, then a purchased token."""
        included = self.included_remaining(caller_id, action)
        if included is None:
            return DebitResult(True, 999_999, "No quota configured.")

        if included > 0:
            increment_usage(self._conn, caller_id, action)
            logger.debug("Recorded %s for '%s'", action, caller_id)
            return DebitResult(
                True, self.check_remaining(caller_id, action), "Job search quota consumed.",
            )

        tokens = self.tokens_of(caller_id)
        if tokens > 0:
            upsert_account(self._conn, caller_id, self.plan_of(caller_id), tokens_delta=-1)
            logger.debug("Spent one purchased token for '%s'", caller_id)
            return DebitResult(
                True,
                self.check_remaining(caller_id, action),
                "1 purchased job-search token consumed.",
            )

        return DebitResult(False, 0, self.exhausted_message(caller_id))

    def exhausted_message(self, caller_id: str) -> str:
        plan_name = self.plan_of(caller_id)
        plan = self._config.plans.get(plan_name)
        per_day = plan.searches_per_day if plan else 0
        return (
            f"You reached your {plan_name} quota ({per_day} searches per day). "
            "Buy token packs or upgrade to continue."
        )

    def add_tokens(self, caller_id: str, count: int) -> int:
        """Credit purchased tokens. Returns the new token balance."""
        if count <= 0:
            msg = "token count must be positive"
            raise ValueError(msg)
        upsert_account(self._conn, caller_id, self.plan_of(caller_id), tokens_delta=count)
        logger.info("Added %d tokens for '%s'", count, caller_id)
        return self.tokens_of(caller_id)

    def set_plan(self, caller_id: str, plan_tier: str) -> None:
        if plan_tier not in self._config.plans:
            valid = ", ".join(sorted(self._config.plans))
            msg = f"Unknown plan '{plan_tier}'. Available: {valid}"
            raise ValueError(msg)
        upsert_account(self._conn, caller_id, plan_tier)
        logger.info("Plan for '%s' set to %s", caller_id, plan_tier)
