"""Abstract base class for platform adapters."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any

import httpx

from src.core.config import ProviderConfig
from src.core.errors import NotConfigured, ProviderError
from src.core.schemas import Job, SearchQuery
from src.pipeline.cancellation import CancellationToken
from src.pipeline.matcher import DeduplicationFilter
from src.pipeline.normalizer import normalize_all
from src.platforms.apify import ApifyClient

logger = logging.getLogger(__name__)


class PlatformAdapter(ABC):
    """Base class that every platform adapter must implement.

    ``search`` never raises for provider trouble: missing credentials,
    rejected submissions, timeouts and transport errors are logged and
    turned into an empty list. Only cancellation propagates.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        token: str | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        api_token = token if token is not None else os.environ.get(config.token_env)
        self._client = ApifyClient(
            self.platform_id,
            config.actor_id,
            api_token,
            http=http,
            timeout_s=config.http_timeout_s,
        )

    @property
    @abstractmethod
    def platform_id(self) -> str:
        """Unique identifier for this platform (e.g. 'linkedin')."""

    @property
    def supports_location(self) -> bool:
        """False when the platform rejects location filters."""
        return True

    @property
    def is_configured(self) -> bool:
        return self._client.is_configured

    @abstractmethod
    async def fetch_raw(
        self, query: SearchQuery, token: CancellationToken,
    ) -> list[Any]:
        """Run the provider and return raw dataset records."""

    async def search(
        self, query: SearchQuery, token: CancellationToken | None = None,
    ) -> list[Job]:
        """Search the platform and return at most ``query.batch_size`` jobs."""
        token = token or CancellationToken()
        if not self.is_configured:
            logger.info(
                "%s not configured (%s unset), returning no results",
                self.platform_id, self._config.token_env,
            )
            return []

        try:
            records = await self.fetch_raw(query, token)
        except NotConfigured as e:
            logger.info("%s", e)
            return []
        except ProviderError as e:
            logger.error("%s search failed: %s", self.platform_id, e)
            return []

        jobs = DeduplicationFilter()(normalize_all(records, self.platform_id))
        logger.info(
            "%s: %d raw records -> %d jobs", self.platform_id, len(records), len(jobs),
        )
        return jobs[: query.batch_size]
