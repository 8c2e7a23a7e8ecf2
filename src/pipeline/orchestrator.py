"""Orchestrator: wires cancellation, cache, quota, adapter, and fallback.

Data flow for one search:
  1. Issue a cancellation token (supersedes the caller's previous search)
  2. Cache lookup by fingerprint (fresh, non-empty hit is free)
  3. Quota check, unless this is a billing-free continuation
  4. Adapter search -> canonical jobs, deduped and bounded
  5. Fallback sample data when the provider yields nothing (LinkedIn only)
  6. Cache write + last-search write (real, non-empty results only)
  7. Quota debit (real, non-empty results only)
"""

import json
import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

from src.core.config import SearchDefaults, Settings
from src.core.errors import QuotaExceeded, SearchCancelled
from src.core.schemas import Job, SearchOutcome, SearchQuery
from src.pipeline.cache import ResultCache
from src.pipeline.cancellation import CancellationRegistry, CancellationToken
from src.pipeline.fallback import FALLBACK_SOURCE, fallback_jobs
from src.pipeline.matcher import DeduplicationFilter
from src.pipeline.quota_manager import JOB_SEARCH, QuotaManager
from src.platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)


class SearchService:
    """Top-level search operation for many callers.

    Provider failures never surface here: the worst outcome of total provider
    failure is zero jobs (or fallback data). Only quota exhaustion and
    cancellation short-circuit, and both are reported as outcome statuses.
    """

    def __init__(
        self,
        adapters: Mapping[str, PlatformAdapter],
        cache: ResultCache,
        quota: QuotaManager,
        *,
        registry: CancellationRegistry | None = None,
        defaults: SearchDefaults | None = None,
        today: date | None = None,
    ) -> None:
        self._adapters = dict(adapters)
        self._cache = cache
        self._quota = quota
        self._registry = registry or CancellationRegistry()
        self._defaults = defaults or SearchDefaults()
        self._today = today

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def quota(self) -> QuotaManager:
        return self._quota

    def cancel(self, caller_id: str) -> bool:
        """Cancel the caller's in-flight search, if any."""
        return self._registry.cancel(caller_id)

    async def search(
        self,
        caller_id: str,
        query: SearchQuery,
        *,
        skip_billing: bool = False,
    ) -> SearchOutcome:
        """Run one search for ``caller_id``.

        Args:
            caller_id: Identity used for quota and cancellation scoping.
            query: The search to run.
            skip_billing: Continuation batches pass True; no quota check or debit.
        """
        token = self._registry.begin(caller_id)
        try:
            return await self._search(caller_id, query, token, skip_billing)
        except SearchCancelled as e:
            logger.info("Search for '%s' cancelled: %s", caller_id, e)
            return SearchOutcome(
                status="cancelled",
                source=query.provider,
                offset=query.offset,
                message=str(e),
            )
        except QuotaExceeded as e:
            return SearchOutcome(
                status="quota_exceeded",
                source=query.provider,
                offset=query.offset,
                remaining=0,
                message=str(e),
            )
        finally:
            self._registry.finish(caller_id, token)

    async def search_request(
        self, caller_id: str, params: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Caller-facing entry point: request dict in, response dict out."""
        query = SearchQuery.from_request(params)
        outcome = await self.search(caller_id, query)
        return outcome.to_response()

    async def _search(
        self,
        caller_id: str,
        query: SearchQuery,
        token: CancellationToken,
        skip_billing: bool,
    ) -> SearchOutcome:
        entry = self._cache.get(query)
        if entry is not None:
            jobs = entry.jobs[: query.batch_size]
            return SearchOutcome(
                jobs=jobs,
                source=query.provider,
                offset=query.offset,
                from_cache=True,
                has_more=self._has_more(query, jobs),
            )

        if not skip_billing:
            remaining = self._quota.check_remaining(caller_id, JOB_SEARCH)
            if remaining <= 0:
                raise QuotaExceeded(caller_id, self._quota.exhausted_message(caller_id))

        adapter = self._adapters.get(query.provider)
        jobs: list[Job] = []
        if adapter is None:
            logger.warning("No adapter registered for '%s'", query.provider)
        else:
            logger.info(
                "Searching '%s' on %s (limit %s, offset %d)",
                query.keywords, query.provider, query.result_limit, query.offset,
            )
            jobs = await adapter.search(query, token)
        token.raise_if_cancelled()

        jobs = DeduplicationFilter()(jobs)[: query.batch_size]

        if not jobs and self._fallback_allowed(query):
            fallback = fallback_jobs(query, self._today)
            logger.info("Using %d fallback jobs for '%s'", len(fallback), query.keywords)
            return SearchOutcome(
                jobs=fallback,
                source=FALLBACK_SOURCE,
                offset=query.offset,
                is_fallback=True,
            )

        if jobs:
            # Last check before mutating shared state; no await until the writes finish
            token.raise_if_cancelled()
            self._cache.put(query, jobs)
            self._cache.remember_last_search(jobs)

        remaining: int | None = None
        if jobs and not skip_billing:
            result = self._quota.debit(caller_id, JOB_SEARCH)
            if not result.allowed:
                raise QuotaExceeded(caller_id, result.message)
            remaining = result.remaining

        logger.info(
            "Search '%s' on %s: %d jobs", query.keywords, query.provider, len(jobs),
        )
        return SearchOutcome(
            jobs=jobs,
            source=jobs[0].source if jobs else FALLBACK_SOURCE,
            offset=query.offset,
            has_more=self._has_more(query, jobs),
            remaining=remaining,
        )

    def _fallback_allowed(self, query: SearchQuery) -> bool:
        return (
            self._defaults.fallback_enabled
            and query.provider in self._defaults.fallback_providers
            and query.offset == 0
        )

    @staticmethod
    def _has_more(query: SearchQuery, jobs: list[Job]) -> bool:
        return query.is_unbounded and len(jobs) >= query.batch_size


def build_service(
    settings: Settings,
    cache: ResultCache,
    quota: QuotaManager,
    **adapter_options: Any,
) -> SearchService:
    """Create a SearchService with one adapter per configured provider."""
    from src.platforms import get_adapter

    adapters = {
        name: get_adapter(name, config, polling=settings.polling, **adapter_options)
        for name, config in settings.providers.items()
    }
    return SearchService(adapters, cache, quota, defaults=settings.search)


async def run_all_searches(
    service: SearchService,
    caller_id: str,
    queries: list[SearchQuery],
) -> list[SearchOutcome]:
    """Run configured searches one after another.

    Quota-blocked searches are kept in the result so callers can report them.
    """
    outcomes: list[SearchOutcome] = []
    for query in queries:
        outcome = await service.search(caller_id, query)
        if outcome.status == "quota_exceeded":
            logger.info("Quota exhausted for '%s' - skipping '%s'", caller_id, query.keywords)
        outcomes.append(outcome)
    return outcomes


def export_results_json(outcomes: list[SearchOutcome]) -> str:
    """Export search outcomes as a JSON string of caller-facing responses."""
    return json.dumps([o.to_response() for o in outcomes], indent=2)
