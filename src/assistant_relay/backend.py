from typing import Protocol, runtime_checkable

from assistant_relay.models import Run, ThreadMessage, ToolOutput


@runtime_checkable
class AssistantBackend(Protocol):
    async def create_thread(self) -> str:
        """Create an empty thread and return its identifier."""
        ...

    async def retrieve_thread(self, thread_id: str) -> str:
        """Return the identifier of an existing thread; raises if it cannot be resumed."""
        ...

    async def add_user_message(self, thread_id: str, content: str) -> str: ...

    async def create_run(self, thread_id: str, assistant_id: str) -> Run: ...

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run: ...

    async def list_active_runs(self, thread_id: str) -> list[Run]: ...

    async def cancel_run(self, thread_id: str, run_id: str) -> Run: ...

    async def submit_tool_outputs(self, thread_id: str, run_id: str, outputs: list[ToolOutput]) -> Run:
        """Submit one output per pending tool call; the backend rejects partial sets."""
        ...

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]: ...

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        ...


def create_backend(api_key: str, *, max_retries: int = 4) -> AssistantBackend:
    """Factory: create the assistant backend for one tenant's API key."""
    from assistant_relay.backends.openai_backend import OpenAIAssistantBackend
    return OpenAIAssistantBackend(api_key, max_retries=max_retries)
