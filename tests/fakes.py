from __future__ import annotations

from assistant_relay.models import Run, ThreadMessage, ToolCall, ToolOutput


class FakeBackend:
    """Scripted in-memory stand-in for the assistant backend.

    ``statuses`` is consumed one entry per ``retrieve_run``; the last entry
    repeats once the script runs out.
    """

    def __init__(
        self,
        *,
        statuses: list[str] | None = None,
        tool_calls: list[ToolCall] | None = None,
        messages: list[ThreadMessage] | None = None,
        existing_threads: set[str] | None = None,
        active_runs: list[list[Run]] | None = None,
    ):
        self.statuses = list(statuses or ["completed"])
        self.tool_calls = list(tool_calls or [])
        self.messages = list(messages or [])
        self.existing_threads = set(existing_threads or ())
        self.active_runs = list(active_runs or [])
        self.calls: list[tuple] = []
        self.submitted: list[list[ToolOutput]] = []
        self.fail_submit = False
        self.submit_status = "queued"
        self.closed = False
        self._thread_seq = 0

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)

    async def create_thread(self) -> str:
        self._thread_seq += 1
        thread_id = f"thread_new_{self._thread_seq}"
        self.existing_threads.add(thread_id)
        self.calls.append(("create_thread",))
        return thread_id

    async def retrieve_thread(self, thread_id: str) -> str:
        self.calls.append(("retrieve_thread", thread_id))
        if thread_id not in self.existing_threads:
            raise LookupError(f"No thread found with id '{thread_id}'")
        return thread_id

    async def add_user_message(self, thread_id: str, content: str) -> str:
        self.calls.append(("add_user_message", thread_id, content))
        return "msg_user"

    async def create_run(self, thread_id: str, assistant_id: str) -> Run:
        self.calls.append(("create_run", thread_id, assistant_id))
        return Run(id="run_1", thread_id=thread_id, assistant_id=assistant_id, status="queued")

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        self.calls.append(("retrieve_run", thread_id, run_id))
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        tool_calls = self.tool_calls if status == "requires_action" else []
        return Run(id=run_id, thread_id=thread_id, assistant_id="asst_1", status=status, tool_calls=tool_calls)

    async def list_active_runs(self, thread_id: str) -> list[Run]:
        self.calls.append(("list_active_runs", thread_id))
        if not self.active_runs:
            return []
        return self.active_runs.pop(0) if len(self.active_runs) > 1 else self.active_runs[0]

    async def cancel_run(self, thread_id: str, run_id: str) -> Run:
        self.calls.append(("cancel_run", thread_id, run_id))
        return Run(id=run_id, thread_id=thread_id, assistant_id="asst_1", status="cancelling")

    async def submit_tool_outputs(self, thread_id: str, run_id: str, outputs: list[ToolOutput]) -> Run:
        self.calls.append(("submit_tool_outputs", thread_id, run_id))
        if self.fail_submit:
            raise RuntimeError("400 tool outputs missing")
        self.submitted.append(list(outputs))
        return Run(id=run_id, thread_id=thread_id, assistant_id="asst_1", status=self.submit_status)

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        self.calls.append(("list_messages", thread_id))
        return list(self.messages)

    async def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class EchoToolHandler:
    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = set(fail_for or ())
        self.handled: list[tuple[str, dict]] = []

    async def handle(self, call, arguments, context) -> str:
        self.handled.append((call.id, arguments))
        if call.id in self.fail_for:
            raise RuntimeError(f"boom {call.id}")
        return f'{{"ok": "{call.id}"}}'


def message(msg_id: str, role: str, created_at: int, text: str | None) -> ThreadMessage:
    return ThreadMessage(
        id=msg_id,
        role=role,
        created_at=created_at,
        text=text,
        raw={"id": msg_id, "role": role, "created_at": created_at},
    )
