"""LinkedIn platform adapter: URL builder + polled Apify run."""

import asyncio
import logging
from typing import Any

import httpx

from src.core.config import PollingConfig, ProviderConfig
from src.core.schemas import SearchQuery
from src.pipeline.cancellation import CancellationToken
from src.pipeline.poller import PollOrchestrator, SleepFn
from src.platforms.base import PlatformAdapter
from src.platforms.linkedin.searcher import build_run_input

logger = logging.getLogger(__name__)


class LinkedInAdapter(PlatformAdapter):
    """LinkedIn search through an asynchronous actor run.

    The run is submitted, then long-polled with early stop once the dataset
    holds ``batch_size`` items. Scraping typically takes 60-120 seconds.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        polling: PollingConfig | None = None,
        token: str | None = None,
        http: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        super().__init__(config, token=token, http=http)
        self._polling = polling or PollingConfig()
        self._poller = PollOrchestrator(
            self._client, interval_s=self._polling.interval_s, sleep=sleep,
        )

    @property
    def platform_id(self) -> str:
        return "linkedin"

    async def fetch_raw(self, query: SearchQuery, token: CancellationToken) -> list[Any]:
        run_input = build_run_input(query)
        logger.info("LinkedIn URL: %s", run_input["urls"][0])
        logger.info(
            "Requesting %s jobs (batch of %d, offset %d)",
            "all available" if query.is_unbounded else query.result_limit,
            query.batch_size,
            query.offset,
        )
        result = await self._poller.run(
            run_input,
            max_attempts=self._polling.max_attempts(query),
            target_count=query.batch_size,
            fetch_limit=query.batch_size,
            token=token,
        )
        return result.items
