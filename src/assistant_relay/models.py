from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ACTIVE_STATUSES = frozenset({"queued", "in_progress", "requires_action", "cancelling"})
TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled", "expired", "incomplete"})


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class ToolOutput:
    tool_call_id: str
    output: str

    def to_dict(self) -> dict[str, str]:
        return {"tool_call_id": self.tool_call_id, "output": self.output}


@dataclass
class Run:
    id: str
    thread_id: str
    assistant_id: str
    status: str
    tool_calls: list[ToolCall] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def requires_action(self) -> bool:
        return self.status == "requires_action"


@dataclass
class ThreadMessage:
    id: str
    role: str
    created_at: int
    text: str | None
    raw: dict[str, Any] = field(default_factory=dict)
