"""Bounded-concurrency extraction of many URLs."""

import asyncio
import math
from typing import Callable

from .errors import ExtractionError, ShutdownError
from .types import BatchItemError, BatchItemResult, ExtractFn

DEFAULT_CONCURRENCY = 3
DEFAULT_DELAY_MS = 1000


def partition_waves(urls: list[str], concurrency: int) -> list[list[str]]:
    """Split urls into consecutive waves of at most `concurrency` items."""
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    return [urls[i:i + concurrency] for i in range(0, len(urls), concurrency)]


class BatchScheduler:
    """Runs extractions in waves with a fixed delay between waves.

    A failed item becomes a BatchItemError; the batch itself never fails.
    Results are returned in input order regardless of completion order.
    The delay is a fixed-rate throttle, not adaptive to observed errors.
    """

    def __init__(self, concurrency: int = DEFAULT_CONCURRENCY, inter_batch_delay_ms: int = DEFAULT_DELAY_MS):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if inter_batch_delay_ms < 0:
            raise ValueError(f"inter_batch_delay_ms must be >= 0, got {inter_batch_delay_ms}")
        self.concurrency = concurrency
        self.inter_batch_delay_ms = inter_batch_delay_ms

    async def run(
        self,
        urls: list[str],
        extract: ExtractFn,
        should_stop: Callable[[], bool] | None = None,
    ) -> list[BatchItemResult]:
        """Run every wave; once should_stop() is true, remaining URLs are not dispatched."""
        waves = partition_waves(urls, self.concurrency)
        print(f"[batch] {len(urls)} URLs in {len(waves)} waves (concurrency={self.concurrency})")

        results: list[BatchItemResult] = []
        for i, wave in enumerate(waves):
            if should_stop is not None and should_stop():
                skipped = urls[len(results):]
                print(f"[batch] WARN stopping, {len(skipped)} URLs not dispatched")
                results.extend(self._skipped(url) for url in skipped)
                break

            print(f"[batch] wave {i + 1}/{len(waves)}")
            results.extend(await asyncio.gather(*[self._run_one(url, extract) for url in wave]))

            stopping = should_stop is not None and should_stop()
            if i < len(waves) - 1 and self.inter_batch_delay_ms > 0 and not stopping:
                await asyncio.sleep(self.inter_batch_delay_ms / 1000)

        failed = sum(1 for r in results if isinstance(r, BatchItemError))
        print(f"[batch] OK {len(results) - failed} succeeded, {failed} failed")
        return results

    @staticmethod
    def _skipped(url: str) -> BatchItemError:
        return BatchItemError(url=url, error_message="Batch stopped before this URL was dispatched", code=ShutdownError.code)

    async def _run_one(self, url: str, extract: ExtractFn) -> BatchItemResult:
        try:
            return await extract(url)
        except Exception as e:
            print(f"[batch] FAIL {url}: {str(e)[:200]}")
            return BatchItemError(
                url=url,
                error_message=str(e),
                code=e.code if isinstance(e, ExtractionError) else "EXTRACTION_FAILED",
            )


def estimated_duration_s(url_count: int, concurrency: int, inter_batch_delay_ms: int) -> float:
    """Minimum wall-clock time spent in inter-wave delays."""
    waves = math.ceil(url_count / concurrency) if url_count else 0
    return max(0, waves - 1) * inter_batch_delay_ms / 1000
