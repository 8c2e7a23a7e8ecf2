"""Tests for ApifyClient against a stubbed transport (no network)."""

import json
from collections.abc import Callable

import httpx
import pytest

from src.core.errors import (
    NotConfigured,
    ProviderRejected,
    ProviderTimeout,
    ProviderUnavailable,
)
from src.platforms.apify import ApifyClient, RunHandle

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, token: str | None = "secret") -> ApifyClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ApifyClient("linkedin", "acme~scraper", token, http=http)


class _Recorder:
    """Records requests and answers with a fixed response."""

    def __init__(self, status_code: int = 200, payload: object = None) -> None:
        self.requests: list[httpx.Request] = []
        self._status = status_code
        self._payload = payload

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self._status, json=self._payload)


# ---------------------------------------------------------------------------
# Polled run protocol
# ---------------------------------------------------------------------------


class TestSubmitRun:
    async def test_returns_handle(self) -> None:
        rec = _Recorder(201, {"data": {"id": "run-1", "defaultDatasetId": "ds-1"}})
        handle = await _client(rec).submit_run({"urls": ["u"], "maxItems": 25})
        assert handle == RunHandle(run_id="run-1", dataset_id="ds-1")

        request = rec.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v2/acts/acme~scraper/runs"
        assert request.url.params["token"] == "secret"
        assert json.loads(request.content) == {"urls": ["u"], "maxItems": 25}

    async def test_client_error_rejected(self) -> None:
        rec = _Recorder(402, {"error": {"message": "payment required"}})
        with pytest.raises(ProviderRejected) as exc_info:
            await _client(rec).submit_run({})
        assert exc_info.value.status_code == 402
        assert exc_info.value.provider == "linkedin"

    async def test_server_error_unavailable(self) -> None:
        with pytest.raises(ProviderUnavailable):
            await _client(_Recorder(503, {})).submit_run({})

    async def test_missing_ids(self) -> None:
        with pytest.raises(ProviderUnavailable, match="missing id"):
            await _client(_Recorder(201, {"data": {"id": "run-1"}})).submit_run({})


class TestRunStatus:
    @pytest.mark.parametrize(("raw", "expected"), [
        ("READY", "pending"),
        ("RUNNING", "running"),
        ("SUCCEEDED", "succeeded"),
        ("FAILED", "failed"),
        ("TIMED-OUT", "failed"),
        ("ABORTING", "running"),
        ("ABORTED", "aborted"),
        ("SOMETHING-NEW", "running"),
    ])
    async def test_status_mapping(self, raw: str, expected: str) -> None:
        rec = _Recorder(200, {"data": {"status": raw}})
        assert await _client(rec).get_run_status("run-1") == expected
        assert rec.requests[0].url.path == "/v2/acts/acme~scraper/runs/run-1"

    async def test_error_raises(self) -> None:
        with pytest.raises(ProviderUnavailable):
            await _client(_Recorder(500, {})).get_run_status("run-1")


class TestDataset:
    async def test_probe_params(self) -> None:
        rec = _Recorder(200, [{"id": "x"}])
        items = await _client(rec).probe_dataset("ds-1", offset=24)
        assert items == [{"id": "x"}]
        params = rec.requests[0].url.params
        assert rec.requests[0].url.path == "/v2/datasets/ds-1/items"
        assert params["offset"] == "24"
        assert params["limit"] == "1"

    async def test_fetch_without_limit(self) -> None:
        rec = _Recorder(200, [{"id": "a"}, {"id": "b"}])
        items = await _client(rec).fetch_dataset("ds-1")
        assert len(items) == 2
        assert "limit" not in rec.requests[0].url.params
        assert "offset" not in rec.requests[0].url.params

    async def test_wrapped_items(self) -> None:
        rec = _Recorder(200, {"items": [{"id": "a"}]})
        assert await _client(rec).fetch_dataset("ds-1", limit=5) == [{"id": "a"}]

    async def test_unexpected_payload_is_empty(self) -> None:
        assert await _client(_Recorder(200, {"total": 0})).fetch_dataset("ds-1") == []

    async def test_invalid_json(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(ProviderUnavailable, match="Invalid JSON"):
            await client.fetch_dataset("ds-1")


class TestAbortRun:
    async def test_abort_path(self) -> None:
        rec = _Recorder(200, {"data": {"status": "ABORTING"}})
        await _client(rec).abort_run("run-1")
        assert rec.requests[0].method == "POST"
        assert rec.requests[0].url.path == "/v2/acts/acme~scraper/runs/run-1/abort"

    async def test_abort_failure_raises(self) -> None:
        with pytest.raises(ProviderUnavailable):
            await _client(_Recorder(404, {})).abort_run("run-1")


# ---------------------------------------------------------------------------
# Blocking run
# ---------------------------------------------------------------------------


class TestRunSync:
    async def test_params(self) -> None:
        rec = _Recorder(201, [{"title": "Dev"}])
        items = await _client(rec).run_sync(
            {"position": "dev"}, server_timeout_s=120, limit=50, offset=50,
        )
        assert items == [{"title": "Dev"}]
        request = rec.requests[0]
        assert request.url.path == "/v2/acts/acme~scraper/run-sync-get-dataset-items"
        assert request.url.params["timeout"] == "120"
        assert request.url.params["limit"] == "50"
        assert request.url.params["offset"] == "50"

    async def test_bad_request_rejected(self) -> None:
        rec = _Recorder(400, {"error": "IndexError: list index out of range"})
        with pytest.raises(ProviderRejected, match="IndexError"):
            await _client(rec).run_sync({}, server_timeout_s=120)


# ---------------------------------------------------------------------------
# Transport and credentials
# ---------------------------------------------------------------------------


class TestTransport:
    async def test_no_token(self) -> None:
        rec = _Recorder(200, [])
        client = _client(rec, token=None)
        assert client.is_configured is False
        with pytest.raises(NotConfigured):
            await client.fetch_dataset("ds-1")
        assert rec.requests == []

    async def test_timeout_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ProviderTimeout):
            await _client(handler).run_sync({}, server_timeout_s=120)

    async def test_connect_error_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderUnavailable, match="failed"):
            await _client(handler).get_run_status("run-1")
