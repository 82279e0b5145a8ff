from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from loguru import logger

from assistant_relay.app_config import AppConfig
from assistant_relay.backend import AssistantBackend, create_backend
from assistant_relay.credentials import CredentialResolver
from assistant_relay.errors import CredentialNotFoundError, RelayError
from assistant_relay.extractor import extract_reply
from assistant_relay.locks import LockManager
from assistant_relay.run_driver import RunDriver
from assistant_relay.sessions import SessionManager
from assistant_relay.tool_dispatcher import ToolCallDispatcher
from assistant_relay.tool_handler import ToolCallContext, ToolHandler

GENERIC_ERROR = "An error occurred while running the assistant"


@dataclass
class RelayRequest:
    message: str
    assistant_id: str
    api_key_name: str
    wordpress_url: str
    thread_id: str | None = None
    webhook_url: str | None = None


def error_response(message: str, status: str = "error") -> dict:
    return {"success": False, "error": message, "status": status}


class AssistantRelay:
    """Handles one chat request end to end.

    Looks up the tenant key, resolves the thread, posts the user message,
    drives a single run (answering tool calls on the way) and returns the
    latest assistant reply. Failures come back as an error body, never raised.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        credentials: CredentialResolver,
        locks: LockManager,
        tool_handler: ToolHandler,
        backend_factory: Callable[..., AssistantBackend] = create_backend,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._config = config
        self._credentials = credentials
        self._locks = locks
        self._tool_handler = tool_handler
        self._backend_factory = backend_factory
        self._clock = clock
        self._sleep = sleep

    async def handle(self, request: RelayRequest) -> dict:
        started_at = self._clock()
        with logger.contextualize(assistant_id=request.assistant_id):
            try:
                return await self._run(request, started_at)
            except RelayError as ex:
                logger.error(f"Relay request failed: {ex}")
                message = str(ex) if ex.status == "timeout" else GENERIC_ERROR
                return error_response(message, ex.status)
            except Exception:
                logger.exception("Unexpected error running assistant")
                return error_response(GENERIC_ERROR)

    async def _run(self, request: RelayRequest, started_at: float) -> dict:
        api_key = await self._credentials.resolve(request.wordpress_url, request.api_key_name)
        if not api_key:
            raise CredentialNotFoundError(request.api_key_name)

        backend = self._backend_factory(api_key, max_retries=self._config.openai_max_retries)
        try:
            return await self._converse(backend, request, started_at)
        finally:
            await backend.close()

    async def _converse(self, backend: AssistantBackend, request: RelayRequest, started_at: float) -> dict:
        sessions = SessionManager(
            backend,
            self._locks,
            cancel_active_runs=self._config.cancel_active_runs,
            cancel_max_attempts=self._config.cancel_max_attempts,
            cancel_retry_seconds=self._config.cancel_retry_seconds,
        )
        thread_id = await sessions.resolve(request.thread_id, request.assistant_id)

        with logger.contextualize(thread_id=thread_id):
            await backend.add_user_message(thread_id, request.message)

            dispatcher = ToolCallDispatcher(
                backend,
                self._tool_handler,
                call_timeout_seconds=self._config.tool_call_timeout_seconds,
                batch_timeout_seconds=self._config.tool_batch_timeout_seconds,
            )
            driver = RunDriver(
                backend,
                dispatcher,
                poll_interval_seconds=self._config.poll_interval_seconds,
                clock=self._clock,
                sleep=self._sleep,
            )
            run = await driver.start(thread_id, request.assistant_id)
            with logger.contextualize(run_id=run.id):
                run = await driver.drive(
                    run,
                    started_at=started_at,
                    deadline_seconds=self._config.run_deadline_seconds,
                    context=ToolCallContext(
                        thread_id=thread_id,
                        run_id=run.id,
                        wordpress_url=request.wordpress_url,
                        webhook_url=request.webhook_url,
                    ),
                )

                messages = await backend.list_messages(thread_id)
                reply = extract_reply(messages)
                logger.info(f"Run finished: status={run.status}, messages={len(messages)}, reply_len={len(reply)}")

        return {
            "success": True,
            "threadId": thread_id,
            "runId": run.id,
            "status": run.status,
            "allMessages": [m.raw for m in messages],
            "messages": [reply],
        }
