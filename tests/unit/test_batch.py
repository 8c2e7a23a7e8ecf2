"""Tests for BatchController with a mocked search service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.schemas import Job, SearchOutcome, SearchQuery
from src.pipeline.batch import BatchController
from src.pipeline.cache import MemoryStore, ResultCache


def _jobs(start: int, count: int) -> list[Job]:
    return [
        Job(
            id=f"linkedin:{i}",
            title=f"Dev {i}",
            company="Acme",
            location="Remote",
            description="d",
            posted_date="2026-02-10",
            source="linkedin",
        )
        for i in range(start, start + count)
    ]


def _controller(*outcomes: SearchOutcome) -> tuple[BatchController, MagicMock]:
    service = MagicMock()
    service.search = AsyncMock(side_effect=list(outcomes))
    return BatchController(service, "user-1", ResultCache(MemoryStore())), service


UNBOUNDED = SearchQuery(keywords="python", result_limit="all")


class TestStart:
    async def test_first_batch_billed(self) -> None:
        controller, service = _controller(
            SearchOutcome(jobs=_jobs(0, 50), source="linkedin", has_more=True),
        )
        await controller.start(UNBOUNDED.with_offset(100))
        query = service.search.await_args.args[1]
        assert query.offset == 0
        assert service.search.await_args.kwargs == {}
        assert controller.has_more is True
        assert controller.offset == 0

    async def test_fallback_never_has_more(self) -> None:
        controller, _ = _controller(
            SearchOutcome(jobs=_jobs(0, 50), source="mock", is_fallback=True, has_more=True),
        )
        await controller.start(UNBOUNDED)
        assert controller.has_more is False

    async def test_failed_start(self) -> None:
        controller, _ = _controller(SearchOutcome(status="quota_exceeded"))
        outcome = await controller.start(UNBOUNDED)
        assert outcome.status == "quota_exceeded"
        assert controller.jobs == []
        assert controller.has_more is False


class TestLoadMore:
    async def test_before_start(self) -> None:
        controller, _ = _controller()
        with pytest.raises(ValueError, match="before start"):
            await controller.load_more()

    async def test_skips_billing_and_advances(self) -> None:
        controller, service = _controller(
            SearchOutcome(jobs=_jobs(0, 50), source="linkedin", has_more=True),
            SearchOutcome(jobs=_jobs(45, 50), source="linkedin", offset=50, has_more=True),
        )
        await controller.start(UNBOUNDED)
        more = await controller.load_more()

        assert service.search.await_args.kwargs == {"skip_billing": True}
        assert service.search.await_args.args[1].offset == 50
        assert [j.id for j in more.jobs][0] == "linkedin:50"
        assert more.total == 45
        assert len(controller.jobs) == 95
        assert controller.offset == 50

    async def test_cancelled_batch_keeps_offset(self) -> None:
        controller, _ = _controller(
            SearchOutcome(jobs=_jobs(0, 50), source="linkedin", has_more=True),
            SearchOutcome(status="cancelled"),
        )
        await controller.start(UNBOUNDED)
        outcome = await controller.load_more()
        assert outcome.status == "cancelled"
        assert controller.offset == 0
        assert controller.has_more is True
        assert len(controller.jobs) == 50
