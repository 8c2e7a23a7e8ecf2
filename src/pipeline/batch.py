"""Incremental "load more" over an unbounded search.

The first batch is billed like any search. Each continuation advances the
offset by one batch, skips billing, drops jobs already shown, and merges the
rest into the accumulated set for the logical search.
"""

import logging

from src.core.schemas import MAX_BATCH_SIZE, Job, SearchOutcome, SearchQuery
from src.pipeline.cache import ResultCache, accumulation_key
from src.pipeline.matcher import DeduplicationFilter
from src.pipeline.orchestrator import SearchService

logger = logging.getLogger(__name__)


class BatchController:
    """Drives one logical search batch by batch for a single caller.

    Usage::

        batches = BatchController(service, "user-1")
        first = await batches.start(query)
        while batches.has_more:
            more = await batches.load_more()
    """

    def __init__(
        self,
        service: SearchService,
        caller_id: str,
        cache: ResultCache | None = None,
    ) -> None:
        self._service = service
        self._caller_id = caller_id
        self._cache = cache if cache is not None else service.cache
        self._query: SearchQuery | None = None
        self._jobs: list[Job] = []
        self._has_more = False

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def offset(self) -> int:
        return self._query.offset if self._query else 0

    @property
    def jobs(self) -> list[Job]:
        """Every job shown so far, in the order it was first seen."""
        return list(self._jobs)

    async def start(self, query: SearchQuery) -> SearchOutcome:
        """Run the first (billed) batch of a search."""
        query = query.with_offset(0)
        self._query = query
        self._jobs = []
        self._has_more = False

        outcome = await self._service.search(self._caller_id, query)
        if outcome.ok:
            self._accept(query, outcome.jobs)
            self._has_more = outcome.has_more and not outcome.is_fallback
        return outcome

    async def load_more(self) -> SearchOutcome:
        """Fetch the next batch without billing.

        Raises:
            ValueError: If no search was started or the last batch was final.
        """
        if self._query is None:
            msg = "load_more called before start"
            raise ValueError(msg)
        if not self._has_more:
            msg = "no more results for this search"
            raise ValueError(msg)

        query = self._query.with_offset(self._query.offset + MAX_BATCH_SIZE)
        outcome = await self._service.search(self._caller_id, query, skip_billing=True)
        if not outcome.ok:
            # The offset stays put so a retry asks for the same batch
            return outcome

        self._query = query
        fresh = DeduplicationFilter(job.id for job in self._jobs)(outcome.jobs)
        self._accept(query, fresh)
        self._has_more = outcome.has_more
        if len(fresh) < len(outcome.jobs):
            logger.debug(
                "Dropped %d already-shown jobs at offset %d",
                len(outcome.jobs) - len(fresh), query.offset,
            )
        return outcome.model_copy(update={"jobs": fresh})

    def _accept(self, query: SearchQuery, jobs: list[Job]) -> None:
        if not jobs:
            return
        self._jobs = self._cache.merge(accumulation_key(query), jobs)
