"""Workday platform adapter: one blocking actor call."""

import logging
from typing import Any

from src.core.schemas import SearchQuery
from src.pipeline.cancellation import CancellationToken
from src.platforms.base import PlatformAdapter
from src.platforms.workday.searcher import build_run_input

logger = logging.getLogger(__name__)


class WorkdayAdapter(PlatformAdapter):
    """Workday search through ``run-sync-get-dataset-items``.

    The server blocks until the run finishes or its own timeout fires, so
    there is no polling; the HTTP timeout sits slightly above the server one.
    """

    @property
    def platform_id(self) -> str:
        return "workday"

    async def fetch_raw(self, query: SearchQuery, token: CancellationToken) -> list[Any]:
        body = build_run_input(query)
        logger.info("Calling Workday actor (sync): %s", body)
        items = await self._client.run_sync(
            body,
            server_timeout_s=self._config.sync_timeout_s,
            limit=query.batch_size,
            offset=query.offset,
        )
        token.raise_if_cancelled()
        logger.info("Workday actor returned %d items", len(items))
        if items and isinstance(items[0], dict):
            logger.debug("Sample Workday item fields: %s", sorted(items[0]))
        return items
