from __future__ import annotations

import asyncio
import json
from collections import deque

from loguru import logger

from assistant_relay.models import ToolCall
from assistant_relay.tool_handler import ToolCallContext


class UnknownToolCallError(KeyError):
    pass


class ToolCallAlreadyCompletedError(RuntimeError):
    pass


class PendingToolCalls:
    """Correlates outstanding tool calls with their out-of-process completion.

    Each call identifier maps to a future; whoever performs the work
    resolves it through ``complete``. Identifiers of recently completed calls
    are remembered so a repeated completion is rejected rather than unknown.
    """

    def __init__(self, *, completed_history: int = 512) -> None:
        self._completed: deque[str] = deque(maxlen=completed_history)
        self._pending: dict[str, asyncio.Future[str]] = {}
        self._requests: dict[str, dict] = {}

    def __contains__(self, tool_call_id: str) -> bool:
        return tool_call_id in self._pending

    def register(self, tool_call_id: str, request: dict) -> asyncio.Future[str]:
        future = self._pending.get(tool_call_id)
        if future is None:
            future = asyncio.get_running_loop().create_future()
            self._pending[tool_call_id] = future
            self._requests[tool_call_id] = request
        return future

    def describe(self, tool_call_id: str) -> dict:
        if tool_call_id not in self._requests:
            raise UnknownToolCallError(tool_call_id)
        return self._requests[tool_call_id]

    def list_pending(self) -> list[dict]:
        return [
            {"tool_call_id": call_id, **self._requests[call_id]}
            for call_id, future in self._pending.items()
            if not future.done()
        ]

    def complete(self, tool_call_id: str, output: object) -> None:
        future = self._pending.get(tool_call_id)
        if future is None:
            if tool_call_id in self._completed:
                raise ToolCallAlreadyCompletedError(tool_call_id)
            raise UnknownToolCallError(tool_call_id)
        if future.done():
            raise ToolCallAlreadyCompletedError(tool_call_id)
        future.set_result(output if isinstance(output, str) else json.dumps(output))

    def discard(self, tool_call_id: str) -> None:
        future = self._pending.pop(tool_call_id, None)
        self._requests.pop(tool_call_id, None)
        if future is None:
            return
        if not future.done():
            future.cancel()
        elif not future.cancelled():
            self._completed.append(tool_call_id)


class PendingToolHandler:
    """Waits for an external actor to complete each tool call."""

    def __init__(self, pending: PendingToolCalls):
        self._pending = pending

    async def handle(self, call: ToolCall, arguments: dict, context: ToolCallContext) -> str:
        future = self._pending.register(call.id, {
            "name": call.name,
            "arguments": arguments,
            "thread_id": context.thread_id,
            "run_id": context.run_id,
            "webhook_url": context.webhook_url,
        })
        logger.info(f"Waiting for external completion of tool call {call.id} ({call.name})")
        try:
            return await future
        finally:
            self._pending.discard(call.id)
