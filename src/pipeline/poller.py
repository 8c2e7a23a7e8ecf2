"""Poll orchestrator: drives one asynchronous provider run to a dataset.

State machine per run:

    pending -> running -> {succeeded | failed}
    any non-terminal state -> aborted   (caller cancellation or early stop)

Rules:
  - Fixed sleep between attempts; the sleep callable is injected so tests
    run without real timers.
  - After each status check the dataset is probed at ``target_count - 1``.
    An item there means enough data exists: stop early and abort the run.
  - Aborts are detached tasks. Their failures are logged, never raised,
    and the main flow never awaits them.
  - Exhausting the attempt budget is not an error: whatever the dataset
    holds is fetched and returned.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.core.errors import ProviderError, ProviderTimeout
from src.core.schemas import PollState, PollStatus
from src.pipeline.cancellation import CancellationToken
from src.platforms.apify import RunHandle

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]

# Strong references so detached tasks are not garbage-collected mid-flight
_DETACHED_TASKS: set[asyncio.Task[Any]] = set()


class RunClient(Protocol):
    """The provider calls a polled run needs."""

    @property
    def provider(self) -> str: ...

    async def submit_run(self, run_input: dict[str, Any]) -> RunHandle: ...
    async def get_run_status(self, run_id: str) -> PollStatus: ...
    async def probe_dataset(self, dataset_id: str, offset: int, limit: int = 1) -> list[Any]: ...
    async def fetch_dataset(
        self, dataset_id: str, limit: int | None = None, offset: int = 0,
    ) -> list[Any]: ...
    async def abort_run(self, run_id: str) -> None: ...


@dataclass
class PollResult:
    """Items fetched at the end of a run plus the final poll state."""

    items: list[Any]
    state: PollState
    aborted_tasks: list[asyncio.Task[Any]] = field(default_factory=list)


def fire_and_forget(coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
    """Schedule ``coro`` detached from the caller; log if it fails."""
    task = asyncio.create_task(coro, name=name)
    _DETACHED_TASKS.add(task)

    def _done(t: asyncio.Task[Any]) -> None:
        _DETACHED_TASKS.discard(t)
        if t.cancelled():
            return
        exc = t.exception()
        if exc is not None:
            logger.warning("Detached task '%s' failed: %s", name, exc)

    task.add_done_callback(_done)
    return task


class PollOrchestrator:
    """Submits a run and polls it until completion, early stop, or budget end."""

    def __init__(
        self,
        client: RunClient,
        *,
        interval_s: float = 2.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._client = client
        self._interval = interval_s
        self._sleep = sleep

    async def run(
        self,
        run_input: dict[str, Any],
        *,
        max_attempts: int,
        target_count: int | None,
        fetch_limit: int | None,
        token: CancellationToken | None = None,
    ) -> PollResult:
        """Drive one run and return its dataset items.

        Args:
            run_input: Actor input sent on submission.
            max_attempts: Status checks allowed before giving up waiting.
            target_count: Items that satisfy the caller; None disables probing.
            fetch_limit: Cap on items fetched at the end (None = all).
            token: Cancellation token checked after every network call.

        Raises:
            ProviderError: Submission or final fetch failed.
            SearchCancelled: The token was cancelled; a detached abort was fired.
        """
        token = token or CancellationToken()
        provider = self._client.provider
        token.raise_if_cancelled()

        handle = await self._client.submit_run(run_input)
        state = PollState(
            run_id=handle.run_id,
            dataset_id=handle.dataset_id,
            status="running",
            max_attempts=max_attempts,
            target_count=target_count,
        )
        logger.info("%s run started: %s (dataset %s)", provider, state.run_id, state.dataset_id)
        self._check_cancelled(state, token)
        aborts: list[asyncio.Task[Any]] = []

        while not state.is_terminal and state.attempts_made < max_attempts:
            await self._sleep(self._interval)
            self._check_cancelled(state, token)

            try:
                state.status = await self._client.get_run_status(state.run_id)
            except ProviderError as e:
                logger.warning("Status check failed (attempt %d): %s", state.attempts_made + 1, e)
            self._check_cancelled(state, token)

            state.attempts_made += 1
            state.elapsed_s = state.attempts_made * self._interval
            logger.debug(
                "%s status check %d/%d (%.0fs elapsed): %s",
                provider, state.attempts_made, max_attempts, state.elapsed_s, state.status,
            )

            if state.is_terminal or not target_count:
                continue

            if await self._target_reached(state, target_count):
                state.early_stopped = True
                logger.info("Early stop: dataset already holds %d items", target_count)
                break
            self._check_cancelled(state, token)

        if state.early_stopped and not state.is_terminal:
            aborts.append(self._abort_detached(state))
        elif not state.is_terminal:
            state.timed_out = True
            timeout = ProviderTimeout(
                provider,
                f"run {state.run_id} not finished after {state.elapsed_s:.0f}s "
                f"(status: {state.status})",
            )
            logger.warning("%s - returning currently available dataset items", timeout)
        elif state.status != "succeeded":
            logger.warning("%s run %s ended as %s", provider, state.run_id, state.status)

        self._check_cancelled(state, token)
        items = await self._client.fetch_dataset(state.dataset_id, limit=fetch_limit)
        self._check_cancelled(state, token)
        logger.info(
            "%s returned %d items after %.0fs", provider, len(items), state.elapsed_s,
        )
        return PollResult(items=items, state=state, aborted_tasks=aborts)

    async def _target_reached(self, state: PollState, target_count: int) -> bool:
        try:
            probe = await self._client.probe_dataset(
                state.dataset_id, offset=max(target_count - 1, 0), limit=1,
            )
        except ProviderError as e:
            logger.warning("Dataset probe failed, continuing polling: %s", e)
            return False
        return len(probe) > 0

    def _check_cancelled(self, state: PollState, token: CancellationToken) -> None:
        if not token.cancelled:
            return
        if not state.is_terminal:
            if not state.early_stopped:
                self._abort_detached(state)
            state.status = "aborted"
        logger.info("Run %s cancelled: %s", state.run_id, token.reason)
        token.raise_if_cancelled()

    def _abort_detached(self, state: PollState) -> asyncio.Task[Any]:
        return fire_and_forget(
            self._client.abort_run(state.run_id), name=f"abort-{state.run_id}",
        )
