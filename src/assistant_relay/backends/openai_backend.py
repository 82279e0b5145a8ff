from typing import Any

import openai
from loguru import logger

from assistant_relay.models import ACTIVE_STATUSES, Run, ThreadMessage, ToolCall, ToolOutput

_MESSAGE_PAGE_LIMIT = 100


def _to_run(sdk_run: Any) -> Run:
    """Convert an SDK run object into the internal Run."""
    tool_calls: list[ToolCall] = []
    required_action = getattr(sdk_run, "required_action", None)
    if required_action is not None and required_action.submit_tool_outputs is not None:
        for call in required_action.submit_tool_outputs.tool_calls:
            tool_calls.append(ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=call.function.arguments or "",
            ))
    return Run(
        id=sdk_run.id,
        thread_id=sdk_run.thread_id,
        assistant_id=sdk_run.assistant_id,
        status=sdk_run.status,
        tool_calls=tool_calls,
    )


def _first_text(content: list[Any]) -> str | None:
    for part in content or []:
        if getattr(part, "type", None) == "text":
            return part.text.value
    return None


def _to_message(sdk_message: Any) -> ThreadMessage:
    raw = sdk_message.model_dump(mode="json") if hasattr(sdk_message, "model_dump") else {}
    return ThreadMessage(
        id=sdk_message.id,
        role=sdk_message.role,
        created_at=int(sdk_message.created_at or 0),
        text=_first_text(sdk_message.content),
        raw=raw,
    )


class OpenAIAssistantBackend:
    def __init__(self, api_key: str, *, max_retries: int = 4):
        self._client = openai.AsyncOpenAI(api_key=api_key, max_retries=max_retries)

    async def create_thread(self) -> str:
        thread = await self._client.beta.threads.create()
        logger.debug(f"Created thread {thread.id}")
        return thread.id

    async def retrieve_thread(self, thread_id: str) -> str:
        thread = await self._client.beta.threads.retrieve(thread_id)
        return thread.id

    async def add_user_message(self, thread_id: str, content: str) -> str:
        message = await self._client.beta.threads.messages.create(
            thread_id,
            role="user",
            content=content,
        )
        logger.debug(f"Appended user message {message.id} to thread {thread_id} (len={len(content)})")
        return message.id

    async def create_run(self, thread_id: str, assistant_id: str) -> Run:
        sdk_run = await self._client.beta.threads.runs.create(thread_id, assistant_id=assistant_id)
        logger.debug(f"Created run {sdk_run.id} on thread {thread_id} for assistant {assistant_id}")
        return _to_run(sdk_run)

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        sdk_run = await self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
        return _to_run(sdk_run)

    async def list_active_runs(self, thread_id: str) -> list[Run]:
        page = await self._client.beta.threads.runs.list(thread_id, limit=20)
        return [_to_run(r) for r in page.data if r.status in ACTIVE_STATUSES]

    async def cancel_run(self, thread_id: str, run_id: str) -> Run:
        sdk_run = await self._client.beta.threads.runs.cancel(run_id, thread_id=thread_id)
        logger.debug(f"Cancel requested for run {run_id} on thread {thread_id}: status={sdk_run.status}")
        return _to_run(sdk_run)

    async def submit_tool_outputs(self, thread_id: str, run_id: str, outputs: list[ToolOutput]) -> Run:
        sdk_run = await self._client.beta.threads.runs.submit_tool_outputs(
            run_id,
            thread_id=thread_id,
            tool_outputs=[o.to_dict() for o in outputs],
        )
        return _to_run(sdk_run)

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        page = await self._client.beta.threads.messages.list(
            thread_id,
            order="desc",
            limit=_MESSAGE_PAGE_LIMIT,
        )
        return [_to_message(m) for m in page.data]

    async def close(self) -> None:
        await self._client.close()
