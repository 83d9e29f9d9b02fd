"""Tests for collector outcomes and the collect() wrapper."""

import asyncio

import pytest

from worker.analysis.outcome import Failed, Success, all_failed, failed_from_exception
from worker.collectors.base import collect
from tests.fixtures.facts import raising, returning, sleeping


class TestOutcomeVariants:
    """Tests for Success and Failed."""

    def test_success_exposes_value(self):
        outcome = Success(42)
        assert outcome.is_success
        assert outcome.value_or_none() == 42
        assert outcome.reason is None

    def test_failed_has_reason_and_no_value(self):
        outcome = Failed("timeout")
        assert not outcome.is_success
        assert outcome.value_or_none() is None
        assert outcome.reason == "timeout"

    def test_failed_from_exception_with_message(self):
        outcome = failed_from_exception(ConnectionError("refused"))
        assert outcome.reason == "ConnectionError: refused"

    def test_failed_from_exception_without_message(self):
        outcome = failed_from_exception(ValueError())
        assert outcome.reason == "ValueError"

    def test_all_failed(self):
        assert all_failed(Failed("a"), Failed("b"))
        assert not all_failed(Failed("a"), Success(1))


class TestCollect:
    """Tests for running a single collector."""

    async def test_success(self):
        outcome = await collect("ssl", returning({"valid": True}), "target", timeout=1)
        assert outcome == Success({"valid": True})

    async def test_missing_collector_is_not_configured(self):
        outcome = await collect("dns", None, "target", timeout=1)
        assert outcome == Failed("not configured")

    async def test_exception_becomes_failed(self):
        outcome = await collect("whois", raising(RuntimeError("rate limited")), timeout=1)
        assert isinstance(outcome, Failed)
        assert outcome.reason == "RuntimeError: rate limited"

    async def test_timeout_becomes_failed(self):
        outcome = await collect("page_speed", sleeping(1.0, "late"), timeout=0.01)
        assert outcome == Failed("timeout")

    async def test_none_result_is_failed(self):
        outcome = await collect("safe_browsing", returning(None), timeout=1)
        assert outcome == Failed("empty result")

    async def test_failures_do_not_affect_siblings(self):
        outcomes = await asyncio.gather(
            collect("ssl", raising(OSError("boom")), timeout=1),
            collect("dns", returning("ok"), timeout=1),
            collect("page_speed", sleeping(1.0), timeout=0.01),
        )
        assert [o.is_success for o in outcomes] == [False, True, False]
        assert outcomes[1].value_or_none() == "ok"

    async def test_cancellation_is_not_swallowed(self):
        async def cancelled(*_args):
            raise asyncio.CancelledError

        with pytest.raises(asyncio.CancelledError):
            await collect("crawl", cancelled, timeout=1)
