import asyncio
import unittest

from assistant_relay.locks import InMemoryLockManager, LockManager, hold


class InMemoryLockManagerTests(unittest.TestCase):
    def test_satisfies_protocol(self) -> None:
        self.assertIsInstance(InMemoryLockManager(), LockManager)

    def test_same_key_is_serialized(self) -> None:
        locks = InMemoryLockManager(poll_interval_seconds=0.001)
        inside = 0
        max_inside = 0
        order: list[str] = []

        async def worker(name: str) -> None:
            nonlocal inside, max_inside
            async with hold(locks, "asst_1"):
                inside += 1
                max_inside = max(max_inside, inside)
                order.append(f"{name}:in")
                await asyncio.sleep(0.01)
                order.append(f"{name}:out")
                inside -= 1

        async def scenario() -> None:
            await asyncio.gather(worker("a"), worker("b"))

        asyncio.run(scenario())

        self.assertEqual(1, max_inside)
        self.assertEqual(["a:in", "a:out", "b:in", "b:out"], order)

    def test_different_keys_do_not_block(self) -> None:
        locks = InMemoryLockManager(poll_interval_seconds=0.001)

        async def scenario() -> bool:
            await locks.acquire("asst_1")
            await asyncio.wait_for(locks.acquire("asst_2"), timeout=0.5)
            return locks.is_held("asst_1") and locks.is_held("asst_2")

        self.assertTrue(asyncio.run(scenario()))

    def test_released_on_error(self) -> None:
        locks = InMemoryLockManager()

        async def scenario() -> None:
            async with hold(locks, "asst_1"):
                raise ValueError("fail")

        with self.assertRaises(ValueError):
            asyncio.run(scenario())
        self.assertFalse(locks.is_held("asst_1"))


if __name__ == "__main__":
    unittest.main()
