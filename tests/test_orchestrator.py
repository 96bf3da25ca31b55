"""
Tests for the Batch Orchestrator

Tests:
- Task creation per (query, engine) and aggregate counts
- Failure isolation between sibling tasks
- Concurrency groups, inter-group delay and status transitions
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, patch

from citetrack.batch import (
    BatchOrchestrator,
    BatchResult,
    ProcessingStatus,
    TaskStatus,
    run_in_batches,
)
from citetrack.engines import EngineAdapter, build_adapters
from citetrack.errors import InvalidRequest, ProviderError

from conftest import CITING_ANSWER, FakeEngineClient, FakeEngineClients


def make_orchestrator(repository, clients):
    adapters = build_adapters(FakeEngineClients(clients), repository)
    return BatchOrchestrator(repository, adapters, batch_delay=0)


# ============================================================================
# Orchestration
# ============================================================================

class TestRunBatch:
    """Test BatchOrchestrator.run_batch."""

    @pytest.mark.asyncio
    async def test_two_queries_two_engines_one_engine_failing(self, repository, seed):
        user = seed.user(plan="pro")
        seed.domain(user, "acme.com")
        q1 = seed.query(user, "first?", engines=["ChatGPT", "Gemini"])
        q2 = seed.query(user, "second?", engines=["ChatGPT", "Gemini"])

        orchestrator = make_orchestrator(repository, {
            "ChatGPT": FakeEngineClient("ChatGPT", CITING_ANSWER),
            "Gemini": FakeEngineClient("Gemini", error=ProviderError("Gemini API error: 500", 500)),
        })

        result = await orchestrator.run_batch(user.id, engines=["ChatGPT", "Gemini"])

        assert len(result.statuses) == 4
        assert [(s.query_id, s.engine) for s in result.statuses] == [
            (q1.id, "ChatGPT"), (q1.id, "Gemini"),
            (q2.id, "ChatGPT"), (q2.id, "Gemini"),
        ]
        assert result.total_queries == 2
        assert result.processed_count == 2
        assert result.failed_count == 2
        assert result.message == "Processed 2 queries successfully, 2 failed"

        failed = [s for s in result.statuses if s.status == TaskStatus.FAILED]
        assert {s.engine for s in failed} == {"Gemini"}
        assert all(s.error == "Gemini API error: 500" for s in failed)

        completed = [s for s in result.statuses if s.status == TaskStatus.COMPLETED]
        assert all(s.completed_at is not None for s in completed)

        assert len(repository.list_citations(user.id)) == 2

    @pytest.mark.asyncio
    async def test_failure_does_not_block_siblings(self, repository, seed):
        user = seed.user()
        seed.query(user, engines=["ChatGPT", "Perplexity", "Gemini"])

        orchestrator = make_orchestrator(repository, {
            "ChatGPT": FakeEngineClient("ChatGPT", CITING_ANSWER),
            "Perplexity": FakeEngineClient("Perplexity", error=ProviderError("Perplexity API error", 500)),
            "Gemini": FakeEngineClient("Gemini", CITING_ANSWER),
        })

        result = await orchestrator.run_batch(user.id, priority="high")

        by_engine = {s.engine: s.status for s in result.statuses}
        assert by_engine == {
            "ChatGPT": TaskStatus.COMPLETED,
            "Perplexity": TaskStatus.FAILED,
            "Gemini": TaskStatus.COMPLETED,
        }

    @pytest.mark.asyncio
    async def test_no_active_queries_is_a_noop(self, repository, seed):
        user = seed.user()
        seed.query(user, status="paused")

        adapter = AsyncMock(spec=EngineAdapter)
        orchestrator = BatchOrchestrator(repository, {"ChatGPT": adapter}, batch_delay=0)

        result = await orchestrator.run_batch(user.id)

        assert result.success is True
        assert result.processed_count == 0
        assert result.failed_count == 0
        assert result.statuses == []
        assert result.message == "No queries to process"
        adapter.process.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_user_id(self, repository):
        orchestrator = BatchOrchestrator(repository, {}, batch_delay=0)
        with pytest.raises(InvalidRequest, match="Missing required field: userId"):
            await orchestrator.run_batch("")

    @pytest.mark.asyncio
    async def test_engine_filter_and_query_selection(self, repository, seed):
        user = seed.user()
        q1 = seed.query(user, "first?")
        seed.query(user, "second?")

        orchestrator = make_orchestrator(repository, {
            "ChatGPT": FakeEngineClient("ChatGPT", CITING_ANSWER),
        })

        result = await orchestrator.run_batch(user.id, query_ids=[q1.id], engines=["ChatGPT"])

        assert result.total_queries == 1
        assert [(s.query_id, s.engine) for s in result.statuses] == [(q1.id, "ChatGPT")]

    @pytest.mark.asyncio
    async def test_unconfigured_engine_fails_its_tasks(self, repository, seed):
        user = seed.user()
        seed.query(user, engines=["ChatGPT", "Gemini"])

        orchestrator = make_orchestrator(repository, {
            "ChatGPT": FakeEngineClient("ChatGPT", CITING_ANSWER),
        })

        result = await orchestrator.run_batch(user.id)

        gemini = [s for s in result.statuses if s.engine == "Gemini"][0]
        assert gemini.status == TaskStatus.FAILED
        assert gemini.error == "Gemini API key not configured"
        assert result.processed_count == 1

    @pytest.mark.asyncio
    async def test_unsupported_engine(self, repository, seed):
        user = seed.user()
        seed.query(user, engines=["Bing"])

        orchestrator = make_orchestrator(repository, {})
        result = await orchestrator.run_batch(user.id, engines=["Bing"])

        assert len(result.statuses) == 1
        assert result.statuses[0].status == TaskStatus.FAILED
        assert result.statuses[0].error == "Unsupported engine: Bing"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("priority,expected", [
        ("high", 5),
        ("normal", 3),
        ("low", 1),
        ("urgent", 3),
    ])
    async def test_priority_sets_batch_size(self, repository, seed, priority, expected):
        user = seed.user()
        seed.query(user)
        orchestrator = BatchOrchestrator(repository, {}, batch_delay=0.5)

        with patch("citetrack.batch.orchestrator.run_in_batches", new_callable=AsyncMock) as runner:
            await orchestrator.run_batch(user.id, priority=priority)

        jobs, batch_size, delay = runner.call_args.args
        assert len(jobs) == 3
        assert batch_size == expected
        assert delay == 0.5

    @pytest.mark.asyncio
    async def test_domains_feed_brand_keywords(self, repository, seed):
        user = seed.user()
        seed.domain(user, "acme.com")
        seed.query(user, engines=["ChatGPT"])

        adapter = AsyncMock(spec=EngineAdapter)
        adapter.process.return_value.success = True
        orchestrator = BatchOrchestrator(repository, {"ChatGPT": adapter}, batch_delay=0)

        await orchestrator.run_batch(user.id)

        args = adapter.process.call_args.args
        assert args[2] == ["acme.com"]
        assert args[3] == ["acme"]


class TestBatchResult:
    """Test the batch envelope."""

    def test_to_dict(self):
        status = ProcessingStatus(query_id="q1", engine="ChatGPT")
        result = BatchResult(processed_count=0, failed_count=0, total_queries=1, statuses=[status])

        data = result.to_dict()
        assert data["success"] is True
        assert data["totalQueries"] == 1
        assert data["statuses"] == [{"queryId": "q1", "engine": "ChatGPT", "status": "pending"}]


# ============================================================================
# Task Group
# ============================================================================

class TestRunInBatches:
    """Test the bounded task group helper."""

    @pytest.mark.asyncio
    async def test_concurrency_bounded_by_batch_size(self):
        running = 0
        peak = 0

        def make_job(i):
            async def job():
                nonlocal running, peak
                running += 1
                peak = max(peak, running)
                await asyncio.sleep(0.01)
                running -= 1
                return i
            return job

        results = await run_in_batches([make_job(i) for i in range(5)], batch_size=2)

        assert results == [0, 1, 2, 3, 4]
        assert peak == 2

    @pytest.mark.asyncio
    async def test_exceptions_are_returned_not_raised(self):
        async def ok():
            return "ok"

        async def boom():
            raise RuntimeError("boom")

        results = await run_in_batches([ok, boom, ok], batch_size=3)

        assert results[0] == "ok"
        assert isinstance(results[1], RuntimeError)
        assert results[2] == "ok"

    @pytest.mark.asyncio
    async def test_delay_between_groups_only(self):
        async def job():
            return None

        with patch("citetrack.batch.orchestrator.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await run_in_batches([job] * 5, batch_size=2, delay=1.0)

        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.0)

    @pytest.mark.asyncio
    async def test_empty_job_list(self):
        assert await run_in_batches([], batch_size=3, delay=1.0) == []


# ============================================================================
# Status Transitions
# ============================================================================

class TestProcessingStatus:
    """Statuses only move forward."""

    def test_happy_path(self):
        status = ProcessingStatus(query_id="q1", engine="ChatGPT")
        status.start()
        status.complete()

        assert status.status == TaskStatus.COMPLETED
        assert status.is_settled
        assert "completedAt" in status.to_dict()

    def test_failure_after_start(self):
        status = ProcessingStatus(query_id="q1", engine="ChatGPT")
        status.start()
        status.fail("bad")
        assert status.status == TaskStatus.FAILED
        assert status.to_dict()["error"] == "bad"

    def test_cannot_fail_without_start(self):
        status = ProcessingStatus(query_id="q1", engine="ChatGPT")
        with pytest.raises(ValueError):
            status.fail("bad")
        assert status.status == TaskStatus.PENDING
        assert status.error is None

    def test_cannot_complete_without_start(self):
        status = ProcessingStatus(query_id="q1", engine="ChatGPT")
        with pytest.raises(ValueError):
            status.complete()

    def test_settled_status_is_final(self):
        status = ProcessingStatus(query_id="q1", engine="ChatGPT")
        status.start()
        status.complete()

        with pytest.raises(ValueError):
            status.fail("late")
        with pytest.raises(ValueError):
            status.start()
        assert status.status == TaskStatus.COMPLETED
