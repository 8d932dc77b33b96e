"""Unit tests for docsnap/batch.py wave scheduling."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from conftest import make_document
from docsnap.batch import BatchScheduler, estimated_duration_s, partition_waves
from docsnap.errors import InitializationError, NavigationError
from docsnap.types import BatchItemError, ExtractedDocument


class TestPartitionWaves:
    """Tests for partition_waves function."""

    def test_even_split(self):
        assert partition_waves(["a", "b", "c", "d"], 2) == [["a", "b"], ["c", "d"]]

    def test_remainder_in_last_wave(self):
        assert partition_waves(["a", "b", "c"], 2) == [["a", "b"], ["c"]]

    def test_empty(self):
        assert partition_waves([], 3) == []

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            partition_waves(["a"], 0)


class TestBatchScheduler:
    """Tests for BatchScheduler.run."""

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            BatchScheduler(concurrency=0)
        with pytest.raises(ValueError):
            BatchScheduler(inter_batch_delay_ms=-1)

    @pytest.mark.asyncio
    async def test_results_in_input_order(self):
        """u2 resolves before u1, but results stay in input order."""
        delays = {"u1": 0.05, "u2": 0.0, "u3": 0.01}

        async def extract(url: str) -> ExtractedDocument:
            await asyncio.sleep(delays[url])
            return make_document(url=url)

        results = await BatchScheduler(concurrency=2, inter_batch_delay_ms=0).run(["u1", "u2", "u3"], extract)
        assert [r.url for r in results] == ["u1", "u2", "u3"]

    @pytest.mark.asyncio
    async def test_failure_isolated_to_item(self):
        async def extract(url: str) -> ExtractedDocument:
            if url == "u2":
                raise NavigationError("Navigation to u2 failed: timeout")
            return make_document(url=url)

        results = await BatchScheduler(concurrency=2, inter_batch_delay_ms=0).run(["u1", "u2", "u3"], extract)
        assert len(results) == 3
        assert isinstance(results[0], ExtractedDocument)
        assert isinstance(results[2], ExtractedDocument)
        assert results[1] == BatchItemError(
            url="u2",
            error_message="Navigation to u2 failed: timeout",
            code="NAVIGATION_FAILED",
        )

    @pytest.mark.asyncio
    async def test_error_codes(self):
        async def extract(url: str) -> ExtractedDocument:
            if url == "init":
                raise InitializationError("no browser")
            raise RuntimeError("boom")

        results = await BatchScheduler(concurrency=2, inter_batch_delay_ms=0).run(["init", "other"], extract)
        assert [r.code for r in results] == ["INITIALIZATION_FAILED", "EXTRACTION_FAILED"]
        assert results[1].error_message == "boom"

    @pytest.mark.asyncio
    async def test_concurrency_bounded_per_wave(self):
        running = 0
        peak = 0

        async def extract(url: str) -> ExtractedDocument:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return make_document(url=url)

        urls = [f"u{i}" for i in range(7)]
        results = await BatchScheduler(concurrency=3, inter_batch_delay_ms=0).run(urls, extract)
        assert len(results) == 7
        assert peak == 3

    @pytest.mark.asyncio
    async def test_delay_between_waves_not_after_last(self):
        extract = AsyncMock(side_effect=lambda url: make_document(url=url))
        with patch("docsnap.batch.asyncio.sleep", new=AsyncMock()) as sleep:
            await BatchScheduler(concurrency=2, inter_batch_delay_ms=1500).run(["a", "b", "c", "d", "e"], extract)
        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.5)

    @pytest.mark.asyncio
    async def test_single_wave_never_sleeps(self):
        extract = AsyncMock(side_effect=lambda url: make_document(url=url))
        with patch("docsnap.batch.asyncio.sleep", new=AsyncMock()) as sleep:
            await BatchScheduler(concurrency=3).run(["a", "b"], extract)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        extract = AsyncMock()
        assert await BatchScheduler().run([], extract) == []
        extract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stop_skips_remaining_waves(self):
        stopped = False

        async def extract(url):
            nonlocal stopped
            stopped = True
            return make_document(url=url)

        with patch("docsnap.batch.asyncio.sleep", new=AsyncMock()) as sleep:
            results = await BatchScheduler(concurrency=2, inter_batch_delay_ms=500).run(
                ["a", "b", "c", "d", "e"], extract, should_stop=lambda: stopped
            )

        assert [r.url for r in results] == ["a", "b", "c", "d", "e"]
        assert all(isinstance(r, ExtractedDocument) for r in results[:2])
        assert [r.code for r in results[2:]] == ["SHUTTING_DOWN"] * 3
        sleep.assert_not_awaited()


class TestEstimatedDuration:
    """Tests for estimated_duration_s function."""

    def test_delays_between_waves(self):
        assert estimated_duration_s(7, 3, 1000) == 2.0
        assert estimated_duration_s(3, 3, 1000) == 0
        assert estimated_duration_s(0, 3, 1000) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
