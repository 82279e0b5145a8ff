from __future__ import annotations

import asyncio
import json

from loguru import logger

from assistant_relay.backend import AssistantBackend
from assistant_relay.errors import ToolBatchTimeoutError, ToolOutputSubmissionError
from assistant_relay.models import Run, ToolCall, ToolOutput
from assistant_relay.tool_handler import ToolCallContext, ToolHandler


def _error_output(message: str, detail: str | None = None) -> str:
    body = {"error": message}
    if detail:
        body["detail"] = detail
    return json.dumps(body)


def parse_arguments(raw: str) -> dict:
    """Parse a tool call's JSON arguments. Raises ValueError unless they form an object."""
    if not raw or not raw.strip():
        return {}
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


class ToolCallDispatcher:
    """Answers every pending tool call of a run and submits the outputs together."""

    def __init__(
        self,
        backend: AssistantBackend,
        handler: ToolHandler,
        *,
        call_timeout_seconds: float = 5.0,
        batch_timeout_seconds: float = 10.0,
    ):
        self._backend = backend
        self._handler = handler
        self._call_timeout_seconds = call_timeout_seconds
        self._batch_timeout_seconds = batch_timeout_seconds

    async def resolve(self, run: Run, context: ToolCallContext) -> Run:
        calls = run.tool_calls
        logger.info(f"Run {run.id} requires action: {', '.join(c.name for c in calls) or '(no calls)'}")

        try:
            outputs = await asyncio.wait_for(
                self.execute_calls(calls, context),
                timeout=self._batch_timeout_seconds,
            )
        except TimeoutError as ex:
            logger.error(f"Tool calls for run {run.id} exceeded {self._batch_timeout_seconds:g}s")
            raise ToolBatchTimeoutError(run.id, self._batch_timeout_seconds) from ex

        try:
            updated = await self._backend.submit_tool_outputs(run.thread_id, run.id, outputs)
        except Exception as ex:
            logger.error(f"Submitting {len(outputs)} tool outputs for run {run.id} failed: {ex}")
            raise ToolOutputSubmissionError(run.id, ex) from ex

        logger.debug(f"Submitted {len(outputs)} tool outputs for run {run.id}: status={updated.status}")
        return updated

    async def execute_calls(self, calls: list[ToolCall], context: ToolCallContext) -> list[ToolOutput]:
        async def run_one(call: ToolCall) -> ToolOutput:
            try:
                arguments = parse_arguments(call.arguments)
            except ValueError as ex:
                logger.warning(f"Invalid arguments for tool call {call.id} ({call.name}): {ex}")
                return ToolOutput(call.id, _error_output("Invalid tool call arguments", str(ex)))

            try:
                output = await asyncio.wait_for(
                    self._handler.handle(call, arguments, context),
                    timeout=self._call_timeout_seconds,
                )
            except TimeoutError:
                logger.warning(f"Tool call {call.id} ({call.name}) timed out after {self._call_timeout_seconds:g}s")
                return ToolOutput(call.id, _error_output("Failed to process report", "timeout"))
            except Exception as ex:
                logger.warning(f"Tool call {call.id} ({call.name}) failed: {ex}")
                return ToolOutput(call.id, _error_output("Failed to process report", str(ex)))
            return ToolOutput(call.id, output)

        return list(await asyncio.gather(*(run_one(c) for c in calls)))
