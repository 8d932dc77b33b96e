"""Unit tests for docsnap/core.py WebExtractor orchestration."""

import signal
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_session, make_snapshot
from docsnap.core import WebExtractor, install_signal_handlers
from docsnap.errors import DeliveryError, NavigationError, ShutdownError
from docsnap.types import BatchItemError, ExtractedDocument, ExtractionOptions

PLAIN_PAGE = """
<html><head><title>Plain</title></head><body>
<h1>Welcome</h1><p>Some text.</p>
<img src="/a.png" alt="A"><a href="/next">Next</a>
<div class="banner">Sale</div>
</body></html>
"""

SAP_PAGE = """
<html><body>
<div class="sapUiDocumentationClassName">sap.m.Button</div>
<div class="sapUiDocumentationOverview">A button control that triggers an action.</div>
</body></html>
"""


def make_fetcher(html: str = PLAIN_PAGE, fail: set[str] = frozenset()) -> MagicMock:
    async def fetch(url, options):
        if url in fail:
            raise NavigationError(f"Navigation to {url} failed")
        return make_snapshot(html, url=url)

    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(side_effect=fetch)
    return fetcher


def make_extractor(html: str = PLAIN_PAGE, sink=None, fail: set[str] = frozenset()) -> WebExtractor:
    return WebExtractor(session=make_session(), fetcher=make_fetcher(html, fail), sink=sink)


class TestExtractOne:
    """Tests for WebExtractor.extract_one."""

    @pytest.mark.asyncio
    async def test_plain_page(self):
        extractor = make_extractor()
        doc = await extractor.extract_one("https://example.com/page")

        assert isinstance(doc, ExtractedDocument)
        assert doc.title == "Plain"
        assert "Welcome" in doc.content
        assert doc.documentation is None
        extractor.session.ensure_started.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_images_and_links_present_iff_requested(self):
        extractor = make_extractor()
        without = await extractor.extract_one("https://example.com/page")
        assert without.images is None and without.links is None

        with_both = await extractor.extract_one(
            "https://example.com/page", ExtractionOptions(extract_images=True, extract_links=True)
        )
        assert [i.src for i in with_both.images] == ["/a.png"]
        assert [link.href for link in with_both.links] == ["/next"]

    @pytest.mark.asyncio
    async def test_remove_selectors(self):
        extractor = make_extractor()
        doc = await extractor.extract_one("https://example.com/page", ExtractionOptions(remove_selectors=[".banner"]))
        assert "Sale" not in doc.content

    @pytest.mark.asyncio
    async def test_documentation_enrichment(self):
        extractor = make_extractor(SAP_PAGE)
        doc = await extractor.extract_one("https://sapui5.hana.ondemand.com/#/api/sap.m.Button")
        assert doc.documentation is not None
        assert doc.documentation.class_name == "sap.m.Button"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["ftp://example.com/x", "not a url", "https://example.com/file.pdf"])
    async def test_invalid_url_rejected_before_browser(self, url):
        extractor = make_extractor()
        with pytest.raises(NavigationError):
            await extractor.extract_one(url)
        extractor.session.ensure_started.assert_not_awaited()
        extractor.fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_navigation_error_propagates(self):
        extractor = make_extractor(fail={"https://example.com/down"})
        with pytest.raises(NavigationError):
            await extractor.extract_one("https://example.com/down")


class TestDelivery:
    """Tests for background delivery to a sink."""

    @pytest.mark.asyncio
    async def test_delivered_after_extraction(self):
        sink = MagicMock()
        sink.deliver = AsyncMock()
        extractor = make_extractor(sink=sink)

        doc = await extractor.extract_one("https://example.com/page")
        await extractor.shutdown()
        sink.deliver.assert_awaited_once_with(doc)

    @pytest.mark.asyncio
    async def test_delivery_failure_does_not_fail_extraction(self):
        sink = MagicMock()
        sink.deliver = AsyncMock(side_effect=DeliveryError("Embeddings service returned 500"))
        extractor = make_extractor(sink=sink)

        doc = await extractor.extract_one("https://example.com/page")
        assert doc.url == "https://example.com/page"
        await extractor.shutdown()
        sink.deliver.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_sink_no_delivery(self):
        extractor = make_extractor()
        await extractor.extract_one("https://example.com/page")
        assert not extractor._deliveries


class TestExtractMany:
    """Tests for WebExtractor.extract_many."""

    @pytest.mark.asyncio
    async def test_partial_failure(self):
        urls = ["https://example.com/1", "https://example.com/2", "https://example.com/3"]
        extractor = make_extractor(fail={urls[1]})
        results = await extractor.extract_many(urls, concurrency=2, inter_batch_delay_ms=0)

        assert [r.url for r in results] == urls
        assert isinstance(results[0], ExtractedDocument)
        assert isinstance(results[1], BatchItemError)
        assert results[1].code == "NAVIGATION_FAILED"
        assert isinstance(results[2], ExtractedDocument)

    @pytest.mark.asyncio
    async def test_options_applied_to_every_url(self):
        extractor = make_extractor()
        options = ExtractionOptions(extract_links=True)
        results = await extractor.extract_many(
            ["https://example.com/a", "https://example.com/b"], options, inter_batch_delay_ms=0
        )
        assert all(r.links is not None for r in results)


class TestLifecycle:
    """Tests for shutdown and signal handling."""

    @pytest.mark.asyncio
    async def test_context_manager_shuts_down(self):
        extractor = make_extractor()
        async with extractor as e:
            await e.extract_one("https://example.com/page")
        extractor.session.shutdown.assert_awaited_once()

    def test_fetcher_session_reused(self):
        session = make_session()
        fetcher = MagicMock()
        fetcher.session = session
        assert WebExtractor(fetcher=fetcher).session is session

    @pytest.mark.asyncio
    async def test_request_shutdown_runs_once(self):
        extractor = make_extractor()
        first = extractor.request_shutdown()
        second = extractor.request_shutdown()
        assert first is second
        await first
        extractor.session.shutdown.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_extraction_after_shutdown_requested(self):
        extractor = make_extractor()
        await extractor.request_shutdown()

        assert extractor.closing is True
        with pytest.raises(ShutdownError):
            await extractor.extract_one("https://example.com/page")
        extractor.session.ensure_started.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shutdown_during_batch_stops_remaining_waves(self):
        extractor = make_extractor()

        async def fetch(url, options):
            if url.endswith("/1"):
                await extractor.request_shutdown()
            return make_snapshot(PLAIN_PAGE, url=url)

        extractor.fetcher.fetch = AsyncMock(side_effect=fetch)
        urls = [f"https://example.com/{i}" for i in range(6)]
        results = await extractor.extract_many(urls, concurrency=2, inter_batch_delay_ms=0)

        assert extractor.fetcher.fetch.await_count == 2
        assert extractor.session.ensure_started.await_count == 2
        assert [r.url for r in results] == urls
        assert all(isinstance(r, ExtractedDocument) for r in results[:2])
        assert all(isinstance(r, BatchItemError) and r.code == "SHUTTING_DOWN" for r in results[2:])

    @pytest.mark.asyncio
    async def test_signal_handlers(self):
        extractor = make_extractor()
        loop = MagicMock()
        install_signal_handlers(extractor, loop)

        registered = [c.args[0] for c in loop.add_signal_handler.call_args_list]
        assert registered == [signal.SIGINT, signal.SIGTERM]

        _, handler, sig = loop.add_signal_handler.call_args_list[0].args
        handler(sig)
        handler(sig)
        await extractor.request_shutdown()

        extractor.session.shutdown.assert_awaited_once()
        removed = {c.args[0] for c in loop.remove_signal_handler.call_args_list}
        assert removed == {signal.SIGINT, signal.SIGTERM}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
