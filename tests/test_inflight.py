"""
Tests for InFlightCoordinator (per-key single flight).
"""

import asyncio

import pytest

from src.drug_relevance.services.inflight import InFlightCoordinator


class TestRun:
    """Tests for InFlightCoordinator.run()."""

    def test_concurrent_callers_share_one_factory_call(self):
        coordinator = InFlightCoordinator(name="test")
        calls = []

        async def factory():
            calls.append(1)
            await asyncio.sleep(0.01)
            return ["metformin"]

        async def main():
            return await asyncio.gather(*[
                coordinator.run("fabry disease", factory, default=None, timeout=5)
                for _ in range(10)
            ])

        results = asyncio.run(main())

        assert len(calls) == 1
        assert all(result == ["metformin"] for result in results)
        assert coordinator.in_flight_count() == 0

    def test_distinct_keys_run_independently(self):
        coordinator = InFlightCoordinator()
        calls = []

        async def factory_for(key):
            calls.append(key)
            await asyncio.sleep(0)
            return key.upper()

        async def main():
            return await asyncio.gather(
                coordinator.run("a", lambda: factory_for("a")),
                coordinator.run("b", lambda: factory_for("b")),
            )

        assert asyncio.run(main()) == ["A", "B"]
        assert sorted(calls) == ["a", "b"]

    def test_owner_exception_releases_joiners_with_default(self):
        coordinator = InFlightCoordinator()

        async def factory():
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        async def main():
            return await asyncio.gather(
                *[coordinator.run("k", factory, default="fallback", timeout=5) for _ in range(3)],
                return_exceptions=True,
            )

        owner, *joiners = asyncio.run(main())

        assert isinstance(owner, RuntimeError)
        assert joiners == ["fallback", "fallback"]
        assert not coordinator.is_in_flight("k")

    def test_joiner_timeout_returns_default(self):
        coordinator = InFlightCoordinator()

        async def slow():
            await asyncio.sleep(0.2)
            return "done"

        async def main():
            owner = asyncio.ensure_future(coordinator.run("k", slow, default=None))
            await asyncio.sleep(0)
            joined = await coordinator.run("k", slow, default="late", timeout=0.01)
            return joined, await owner

        joined, owned = asyncio.run(main())

        assert joined == "late"
        assert owned == "done"

    def test_sequential_calls_run_again(self):
        coordinator = InFlightCoordinator()
        calls = []

        async def factory():
            calls.append(1)
            return len(calls)

        async def main():
            first = await coordinator.run("k", factory)
            second = await coordinator.run("k", factory)
            return first, second

        assert asyncio.run(main()) == (1, 2)


class TestResolve:
    """Tests for acquire()/resolve() bookkeeping."""

    def test_resolve_is_idempotent(self):
        coordinator = InFlightCoordinator()

        async def main():
            ticket, already = coordinator.acquire("k")
            assert already is False
            coordinator.resolve("k", "first", ticket=ticket)
            coordinator.resolve("k", "second", ticket=ticket)
            return await ticket.future

        assert asyncio.run(main()) == "first"

    def test_second_acquire_joins(self):
        coordinator = InFlightCoordinator()

        async def main():
            first, _ = coordinator.acquire("k")
            second, already = coordinator.acquire("k")
            coordinator.resolve("k", None)
            return first is second, already

        assert asyncio.run(main()) == (True, True)

    def test_stale_owner_does_not_retire_newer_ticket(self):
        coordinator = InFlightCoordinator()

        async def main():
            old, _ = coordinator.acquire("k")
            assert coordinator.clear() == 1
            new, already = coordinator.acquire("k")
            coordinator.resolve("k", "stale", ticket=old)
            return old, new, already

        old, new, already = asyncio.run(main())

        assert already is False
        assert old.done
        assert not new.done
        assert coordinator.is_in_flight("k")

    def test_acquire_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            InFlightCoordinator().acquire("k")
