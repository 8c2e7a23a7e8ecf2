"""CareerOne platform adapter: one blocking actor call, location dropped."""

import logging
from typing import Any

from src.core.errors import ProviderError
from src.core.schemas import SearchQuery
from src.pipeline.cancellation import CancellationToken
from src.platforms.base import PlatformAdapter
from src.platforms.careerone.searcher import build_run_input, is_location_error

logger = logging.getLogger(__name__)


class CareerOneAdapter(PlatformAdapter):
    """CareerOne (AU/NZ) search through ``run-sync-get-dataset-items``."""

    @property
    def platform_id(self) -> str:
        return "careerone"

    @property
    def supports_location(self) -> bool:
        return False

    async def fetch_raw(self, query: SearchQuery, token: CancellationToken) -> list[Any]:
        if query.location:
            logger.debug("CareerOne ignores location filter '%s'", query.location)
        body = build_run_input(query)
        logger.info("Calling CareerOne actor (sync): %s", body)
        try:
            items = await self._client.run_sync(
                body,
                server_timeout_s=self._config.sync_timeout_s,
                limit=query.batch_size,
                offset=query.offset,
            )
        except ProviderError as e:
            if is_location_error(str(e)):
                logger.error(
                    "CareerOne: location not found in AU/NZ database. "
                    "Try an Australian city (Sydney, Melbourne, Brisbane, Perth, Adelaide).",
                )
            raise
        token.raise_if_cancelled()
        logger.info("CareerOne actor returned %d items", len(items))
        if items and isinstance(items[0], dict):
            logger.debug("Sample CareerOne item fields: %s", sorted(items[0]))
        return items
