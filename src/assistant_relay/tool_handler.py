from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from assistant_relay.models import ToolCall


@dataclass(frozen=True)
class ToolCallContext:
    thread_id: str
    run_id: str
    wordpress_url: str
    webhook_url: str | None


@runtime_checkable
class ToolHandler(Protocol):
    async def handle(self, call: ToolCall, arguments: dict, context: ToolCallContext) -> str:
        """Perform the requested action and return its output serialized as a string."""
        ...
