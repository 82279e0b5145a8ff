from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

from loguru import logger

from assistant_relay.backend import AssistantBackend
from assistant_relay.errors import RunTimeoutError
from assistant_relay.models import Run
from assistant_relay.tool_dispatcher import ToolCallDispatcher
from assistant_relay.tool_handler import ToolCallContext


class RunDriver:
    """Starts one run and polls it to a terminal status within a deadline.

    The remote run is left as-is when the deadline passes.
    """

    def __init__(
        self,
        backend: AssistantBackend,
        dispatcher: ToolCallDispatcher,
        *,
        poll_interval_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._backend = backend
        self._dispatcher = dispatcher
        self._poll_interval_seconds = poll_interval_seconds
        self._clock = clock
        self._sleep = sleep

    async def start(self, thread_id: str, assistant_id: str) -> Run:
        run = await self._backend.create_run(thread_id, assistant_id)
        logger.info(f"Started run {run.id} on thread {thread_id}: status={run.status}")
        return run

    async def drive(
        self,
        run: Run,
        *,
        started_at: float,
        deadline_seconds: float,
        context: ToolCallContext,
    ) -> Run:
        last_status = run.status
        while True:
            run = await self._backend.retrieve_run(run.thread_id, run.id)
            if run.status != last_status:
                logger.debug(f"Run {run.id}: {last_status} -> {run.status}")
                last_status = run.status

            if run.is_terminal:
                if run.status != "completed":
                    logger.warning(f"Run {run.id} ended with status {run.status}")
                return run

            if run.requires_action:
                run = await self._dispatcher.resolve(run, context)
                logger.debug(f"Run {run.id} after tool outputs: status={run.status}")
                last_status = run.status
                if run.is_terminal:
                    return run

            elapsed = self._clock() - started_at
            if elapsed >= deadline_seconds:
                logger.error(f"Run {run.id} still {run.status} after {elapsed:.1f}s, giving up")
                raise RunTimeoutError(run.id, deadline_seconds)

            await self._sleep(min(self._poll_interval_seconds, deadline_seconds - elapsed))
