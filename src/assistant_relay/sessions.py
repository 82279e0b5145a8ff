from __future__ import annotations

from loguru import logger
from tenacity import AsyncRetrying, RetryError, retry_if_result, stop_after_attempt, wait_fixed

from assistant_relay.backend import AssistantBackend
from assistant_relay.locks import LockManager, hold


def _on_settle_retry(retry_state) -> None:
    logger.debug(f"Runs still active, re-checking (attempt {retry_state.attempt_number})...")


class SessionManager:
    """Resolves the thread a request talks to, resuming or creating it."""

    def __init__(
        self,
        backend: AssistantBackend,
        locks: LockManager,
        *,
        cancel_active_runs: bool = True,
        cancel_max_attempts: int = 5,
        cancel_retry_seconds: float = 1.0,
    ):
        self._backend = backend
        self._locks = locks
        self._cancel_active_runs = cancel_active_runs
        self._cancel_max_attempts = cancel_max_attempts
        self._cancel_retry_seconds = cancel_retry_seconds

    async def resolve(self, thread_id: str | None, assistant_id: str) -> str:
        async with hold(self._locks, assistant_id):
            if thread_id:
                resumed = await self._try_resume(thread_id)
                if resumed is not None:
                    return resumed
            new_id = await self._backend.create_thread()
            logger.info(f"Started new thread {new_id} for assistant {assistant_id}")
            return new_id

    async def _try_resume(self, thread_id: str) -> str | None:
        try:
            resumed = await self._backend.retrieve_thread(thread_id)
        except Exception as ex:
            logger.warning(f"Could not resume thread {thread_id}, starting a new one: {ex}")
            return None

        if self._cancel_active_runs and not await self._settle_active_runs(resumed):
            logger.warning(f"Thread {resumed} still has active runs, starting a new one")
            return None

        logger.info(f"Resumed thread {resumed}")
        return resumed

    async def _settle_active_runs(self, thread_id: str) -> bool:
        """Cancel runs left active on the thread. Returns True once none remain."""
        try:
            active = await self._backend.list_active_runs(thread_id)
            if not active:
                return True
            for run in active:
                if run.status != "cancelling":
                    logger.info(f"Cancelling active run {run.id} ({run.status}) on thread {thread_id}")
                    await self._backend.cancel_run(thread_id, run.id)

            retrying = AsyncRetrying(
                retry=retry_if_result(bool),
                stop=stop_after_attempt(self._cancel_max_attempts),
                wait=wait_fixed(self._cancel_retry_seconds),
                before_sleep=_on_settle_retry,
            )
            await retrying(self._backend.list_active_runs, thread_id)
        except RetryError:
            return False
        except Exception as ex:
            logger.warning(f"Failed to settle active runs on thread {thread_id}: {ex}")
            return False
        return True
