import asyncio
import unittest

from assistant_relay.errors import RunTimeoutError
from assistant_relay.models import ToolCall
from assistant_relay.run_driver import RunDriver
from assistant_relay.tool_dispatcher import ToolCallDispatcher
from assistant_relay.tool_handler import ToolCallContext
from tests.fakes import EchoToolHandler, FakeBackend, FakeClock

_CONTEXT = ToolCallContext(
    thread_id="thread_1",
    run_id="run_1",
    wordpress_url="https://tenant.example",
    webhook_url=None,
)


class RunDriverTests(unittest.TestCase):
    def _driver(self, backend: FakeBackend, clock: FakeClock, handler=None) -> RunDriver:
        dispatcher = ToolCallDispatcher(backend, handler or EchoToolHandler())
        return RunDriver(backend, dispatcher, poll_interval_seconds=1.0, clock=clock, sleep=clock.sleep)

    def _drive(self, driver: RunDriver, deadline: float = 25.0):
        async def scenario():
            run = await driver.start("thread_1", "asst_1")
            return await driver.drive(run, started_at=0.0, deadline_seconds=deadline, context=_CONTEXT)

        return asyncio.run(scenario())

    def test_polls_until_completed(self) -> None:
        backend = FakeBackend(statuses=["queued", "in_progress", "in_progress", "completed"])
        clock = FakeClock()

        run = self._drive(self._driver(backend, clock))

        self.assertEqual("completed", run.status)
        self.assertEqual(4, backend.count("retrieve_run"))
        self.assertEqual([1.0, 1.0, 1.0], clock.sleeps)

    def test_creates_exactly_one_run(self) -> None:
        backend = FakeBackend(statuses=["in_progress", "completed"])
        self._drive(self._driver(backend, FakeClock()))
        self.assertEqual(1, backend.count("create_run"))

    def test_non_completed_terminal_status_is_returned(self) -> None:
        for status in ("failed", "cancelled", "expired"):
            backend = FakeBackend(statuses=["in_progress", status])
            run = self._drive(self._driver(backend, FakeClock()))
            self.assertEqual(status, run.status)

    def test_requires_action_dispatches_tool_calls(self) -> None:
        calls = [ToolCall("call_1", "submit_report", "{}"), ToolCall("call_2", "submit_report", "{}")]
        backend = FakeBackend(statuses=["requires_action", "in_progress", "completed"], tool_calls=calls)
        handler = EchoToolHandler()

        run = self._drive(self._driver(backend, FakeClock(), handler))

        self.assertEqual("completed", run.status)
        self.assertEqual(1, len(backend.submitted))
        self.assertEqual({"call_1", "call_2"}, {o.tool_call_id for o in backend.submitted[0]})

    def test_terminal_status_from_submission_ends_polling(self) -> None:
        backend = FakeBackend(statuses=["requires_action", "in_progress"], tool_calls=[ToolCall("call_1", "f", "{}")])
        backend.submit_status = "completed"
        clock = FakeClock()

        run = self._drive(self._driver(backend, clock))

        self.assertEqual("completed", run.status)
        self.assertEqual(1, backend.count("retrieve_run"))
        self.assertEqual([], clock.sleeps)

    def test_stuck_run_times_out_within_one_poll_of_deadline(self) -> None:
        backend = FakeBackend(statuses=["in_progress"])
        clock = FakeClock()

        with self.assertRaises(RunTimeoutError):
            self._drive(self._driver(backend, clock), deadline=25.0)

        self.assertGreaterEqual(clock.now, 25.0)
        self.assertLessEqual(clock.now, 26.0)
        self.assertEqual(0, backend.count("cancel_run"))

    def test_fractional_deadline_sleeps_only_the_remainder(self) -> None:
        backend = FakeBackend(statuses=["in_progress"])
        clock = FakeClock()

        with self.assertRaises(RunTimeoutError):
            self._drive(self._driver(backend, clock), deadline=2.5)

        self.assertEqual([1.0, 1.0, 0.5], clock.sleeps)
        self.assertEqual(2.5, clock.now)


if __name__ == "__main__":
    unittest.main()
