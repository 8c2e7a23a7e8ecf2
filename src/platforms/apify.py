"""Async client for the Apify actor API shared by all three job platforms.

Covers the five calls a polled run needs (submit, status, probe, fetch,
abort) and the blocking ``run-sync-get-dataset-items`` call used by the
synchronous platforms. Transport failures are translated into the
ProviderError hierarchy so callers never handle httpx exceptions directly.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from src.core.errors import (
    NotConfigured,
    ProviderError,
    ProviderRejected,
    ProviderTimeout,
    ProviderUnavailable,
)
from src.core.schemas import PollStatus

logger = logging.getLogger(__name__)

APIFY_BASE_URL = "https://api.apify.com/v2"

# Apify run statuses -> poll state machine statuses
RUN_STATUS_MAP: dict[str, PollStatus] = {
    "READY": "pending",
    "RUNNING": "running",
    "SUCCEEDED": "succeeded",
    "FAILED": "failed",
    "TIMING-OUT": "running",
    "TIMED-OUT": "failed",
    "ABORTING": "running",
    "ABORTED": "aborted",
}


@dataclass(frozen=True)
class RunHandle:
    """Identifiers returned by a run submission."""

    run_id: str
    dataset_id: str


class ApifyClient:
    """Thin async wrapper around one Apify actor.

    An ``httpx.AsyncClient`` may be injected (tests use ``httpx.MockTransport``);
    otherwise one is created per call and closed afterwards.
    """

    def __init__(
        self,
        provider: str,
        actor_id: str,
        token: str | None,
        *,
        http: httpx.AsyncClient | None = None,
        timeout_s: float = 30.0,
        base_url: str = APIFY_BASE_URL,
    ) -> None:
        self._provider = provider
        self._actor_id = actor_id
        self._token = token
        self._http = http
        self._timeout = httpx.Timeout(timeout_s)
        self._base_url = base_url.rstrip("/")

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def is_configured(self) -> bool:
        return bool(self._token)

    # --- Polled run protocol ---

    async def submit_run(self, run_input: dict[str, Any]) -> RunHandle:
        """Start an actor run. A non-2xx answer is terminal."""
        response = await self._request(
            "POST", f"/acts/{self._actor_id}/runs", json=run_input,
        )
        if response.is_error:
            raise self._rejection(response, "Failed to start run")
        data = self._json(response).get("data") or {}
        run_id = data.get("id")
        dataset_id = data.get("defaultDatasetId")
        if not run_id or not dataset_id:
            msg = "Run submission response missing id/defaultDatasetId"
            raise ProviderUnavailable(self._provider, msg)
        return RunHandle(run_id=str(run_id), dataset_id=str(dataset_id))

    async def get_run_status(self, run_id: str) -> PollStatus:
        response = await self._request("GET", f"/acts/{self._actor_id}/runs/{run_id}")
        if response.is_error:
            msg = f"Status check failed: HTTP {response.status_code}"
            raise ProviderUnavailable(self._provider, msg)
        raw_status = str((self._json(response).get("data") or {}).get("status", "")).upper()
        status = RUN_STATUS_MAP.get(raw_status)
        if status is None:
            logger.warning("Unknown run status '%s' from %s", raw_status, self._provider)
            return "running"
        return status

    async def probe_dataset(
        self, dataset_id: str, offset: int, limit: int = 1,
    ) -> list[Any]:
        """Read a small window of the dataset without waiting for the run."""
        return await self.fetch_dataset(dataset_id, limit=limit, offset=offset)

    async def fetch_dataset(
        self, dataset_id: str, limit: int | None = None, offset: int = 0,
    ) -> list[Any]:
        params: dict[str, str] = {}
        if limit is not None:
            params["limit"] = str(limit)
        if offset:
            params["offset"] = str(offset)
        response = await self._request(
            "GET", f"/datasets/{dataset_id}/items", params=params,
        )
        if response.is_error:
            msg = f"Dataset fetch failed: HTTP {response.status_code}"
            raise ProviderUnavailable(self._provider, msg)
        return _items(self._json_any(response))

    async def abort_run(self, run_id: str) -> None:
        response = await self._request(
            "POST", f"/acts/{self._actor_id}/runs/{run_id}/abort",
        )
        if response.is_error:
            msg = f"Abort failed: HTTP {response.status_code}"
            raise ProviderUnavailable(self._provider, msg)

    # --- Blocking run ---

    async def run_sync(
        self,
        run_input: dict[str, Any],
        *,
        server_timeout_s: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Any]:
        """Run the actor and block until its dataset items are returned."""
        params: dict[str, str] = {"timeout": str(server_timeout_s)}
        if limit is not None:
            params["limit"] = str(limit)
        if offset:
            params["offset"] = str(offset)
        response = await self._request(
            "POST",
            f"/acts/{self._actor_id}/run-sync-get-dataset-items",
            json=run_input,
            params=params,
        )
        if response.is_error:
            raise self._rejection(response, "Synchronous run failed")
        return _items(self._json_any(response))

    # --- Internals ---

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        if not self._token:
            msg = "API token not configured"
            raise NotConfigured(self._provider, msg)
        query = {"token": self._token, **(params or {})}
        url = f"{self._base_url}{path}"
        try:
            if self._http is not None:
                return await self._http.request(
                    method, url, json=json, params=query, timeout=self._timeout,
                )
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                return await client.request(method, url, json=json, params=query)
        except httpx.TimeoutException as e:
            raise ProviderTimeout(self._provider, f"{method} {path} timed out") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(self._provider, f"{method} {path} failed: {e}") from e

    def _rejection(self, response: httpx.Response, prefix: str) -> ProviderError:
        detail = response.text[:500]
        msg = f"{prefix}: HTTP {response.status_code} {detail}"
        if 400 <= response.status_code < 500:
            return ProviderRejected(self._provider, msg, status_code=response.status_code)
        return ProviderUnavailable(self._provider, msg)

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        data = self._json_any(response)
        if not isinstance(data, dict):
            msg = "Expected a JSON object"
            raise ProviderUnavailable(self._provider, msg)
        return data

    def _json_any(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            msg = f"Invalid JSON from provider: {e}"
            raise ProviderUnavailable(self._provider, msg) from e


def _items(payload: Any) -> list[Any]:
    """Dataset endpoints return an array; some wrap it in items/data."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("items", "data"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []
