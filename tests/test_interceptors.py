"""Tests for interceptor chains."""

from __future__ import annotations

import asyncio
import logging

import pytest

from fetches.interceptors import InterceptorChain, Interceptors


class TestRegistration:
    def test_ids_are_sequential(self) -> None:
        chain = InterceptorChain()
        ids = [chain.use(lambda v: v) for _ in range(3)]
        assert ids == [0, 1, 2]

    def test_eject_keeps_ids_stable(self) -> None:
        chain = InterceptorChain()
        chain.use(lambda v: v)
        chain.use(lambda v: v)
        chain.eject(0)
        assert chain.use(lambda v: v) == 2
        assert len(chain) == 3
        assert not chain.is_active(0)
        assert chain.is_active(1)

    def test_eject_unknown_id_is_ignored(self) -> None:
        chain = InterceptorChain()
        chain.use(lambda v: v)
        chain.eject(7)
        chain.eject(-1)
        assert chain.is_active(0)

    def test_namespace_has_two_chains(self) -> None:
        interceptors = Interceptors()
        assert interceptors.request.use(lambda v: v) == 0
        assert interceptors.response.use(lambda v: v) == 0


class TestRun:
    def test_runs_in_registration_order(self) -> None:
        chain = InterceptorChain()
        chain.use(lambda v: v + ["a"])
        chain.use(lambda v: v + ["b"])
        assert asyncio.run(chain.run([])) == ["a", "b"]

    def test_ejected_slot_is_skipped(self) -> None:
        chain = InterceptorChain()
        chain.use(lambda v: v + 1)
        middle = chain.use(lambda v: v * 100)
        chain.use(lambda v: v + 1)
        chain.eject(middle)
        assert asyncio.run(chain.run(0)) == 2

    def test_none_keeps_current_value(self) -> None:
        seen = []
        chain = InterceptorChain()
        chain.use(seen.append)
        chain.use(lambda v: v * 2)
        assert asyncio.run(chain.run(21)) == 42
        assert seen == [21]

    def test_async_hooks(self) -> None:
        async def double(v):
            await asyncio.sleep(0)
            return v * 2

        chain = InterceptorChain()
        chain.use(double)
        chain.use(lambda v: v + 1)
        assert asyncio.run(chain.run(5)) == 11

    def test_error_propagates_after_rejection_hook(self) -> None:
        seen: list[BaseException] = []
        boom = ValueError("boom")

        def fail(v):
            raise boom

        chain = InterceptorChain()
        chain.use(fail, seen.append)
        with pytest.raises(ValueError) as excinfo:
            asyncio.run(chain.run(1))
        assert excinfo.value is boom
        assert seen == [boom]

    def test_failing_rejection_hook_does_not_mask_original(self, caplog) -> None:
        def fail(v):
            raise ValueError("original")

        def reject(exc):
            raise RuntimeError("secondary")

        chain = InterceptorChain("request")
        chain.use(fail, reject)
        with caplog.at_level(logging.WARNING, logger="fetches.interceptors"):
            with pytest.raises(ValueError, match="original"):
                asyncio.run(chain.run(1))
        assert "secondary" in caplog.text

    def test_later_slots_not_run_after_error(self) -> None:
        calls = []

        def fail(v):
            raise KeyError("x")

        chain = InterceptorChain()
        chain.use(fail)
        chain.use(calls.append)
        with pytest.raises(KeyError):
            asyncio.run(chain.run(1))
        assert calls == []
