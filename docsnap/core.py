"""Extraction pipeline: render, extract, enrich, deliver."""

import asyncio
import signal
from functools import partial

from .batch import DEFAULT_CONCURRENCY, DEFAULT_DELAY_MS, BatchScheduler
from .documentation import DocumentationExtractor
from .errors import NavigationError, ShutdownError
from .extract import ContentExtractor
from .fetch import DEFAULT_SETTLE_TIME_MS, PageFetcher
from .session import RenderSession
from .types import BatchItemResult, DocumentSink, ExtractedDocument, ExtractionOptions
from .urls import validate_url


class WebExtractor:
    """Single entry point for extracting one or many URLs.

    Owns one RenderSession for its lifetime. Use as an async context manager
    or call shutdown() when done.
    """

    def __init__(
        self,
        session: RenderSession | None = None,
        fetcher: PageFetcher | None = None,
        content: ContentExtractor | None = None,
        documentation: DocumentationExtractor | None = None,
        sink: DocumentSink | None = None,
        settle_time_ms: int = DEFAULT_SETTLE_TIME_MS,
    ):
        if session is None:
            session = fetcher.session if fetcher is not None else RenderSession()
        self.session = session
        self.fetcher = fetcher or PageFetcher(session, settle_time_ms)
        self.content = content or ContentExtractor()
        self.documentation = documentation or DocumentationExtractor()
        self.sink = sink
        self._deliveries: set[asyncio.Task] = set()
        self._shutdown_task: asyncio.Task | None = None
        self._closing = False

    @property
    def closing(self) -> bool:
        """True once request_shutdown() has been called; no new extractions start."""
        return self._closing

    async def __aenter__(self) -> "WebExtractor":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.shutdown()

    async def extract_one(self, url: str, options: ExtractionOptions | None = None) -> ExtractedDocument:
        """
        Extract a single URL.

        Args:
            url: Page to extract (http/https, not a downloadable file)
            options: Extraction options; defaults apply when omitted

        Raises:
            InitializationError: If the browser cannot be started
            NavigationError: If the URL is rejected or cannot be loaded
            ShutdownError: If shutdown has been requested
        """
        if self._closing:
            raise ShutdownError(f"Extractor is shutting down: {url}")
        options = options or ExtractionOptions()
        error = validate_url(url)
        if error:
            raise NavigationError(f"{error}: {url}")

        await self.session.ensure_started()
        snapshot = await self.fetcher.fetch(url, options)

        soup = self.content.prepare(snapshot.raw_html, options.remove_selectors)
        document = self.content.extract(soup, snapshot, options)

        if self.documentation.matches(url, soup):
            print(f"[extractor] Documentation page detected: {url}")
            document = document.model_copy(update={"documentation": self.documentation.extract(soup)})

        if self.sink is not None:
            self._schedule_delivery(document)
        return document

    async def extract_many(
        self,
        urls: list[str],
        options: ExtractionOptions | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        inter_batch_delay_ms: int = DEFAULT_DELAY_MS,
    ) -> list[BatchItemResult]:
        """Extract many URLs in waves. Failures are returned as BatchItemError entries."""
        scheduler = BatchScheduler(concurrency=concurrency, inter_batch_delay_ms=inter_batch_delay_ms)
        return await scheduler.run(
            urls, partial(self.extract_one, options=options), should_stop=lambda: self._closing
        )

    def _schedule_delivery(self, document: ExtractedDocument) -> None:
        task = asyncio.create_task(self._deliver(document))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)

    async def _deliver(self, document: ExtractedDocument) -> None:
        try:
            await self.sink.deliver(document)
            print(f"[deliver] OK {document.url}")
        except Exception as e:
            print(f"[deliver] FAIL {document.url}: {str(e)[:200]}")

    async def shutdown(self) -> None:
        """Wait for pending deliveries, then close the browser. Safe to call repeatedly."""
        if self._deliveries:
            print(f"[extractor] Waiting for {len(self._deliveries)} pending deliveries...")
            await asyncio.gather(*list(self._deliveries))
        await self.session.shutdown()

    def request_shutdown(self) -> asyncio.Task:
        """Stop accepting extractions and schedule shutdown; later calls return the same task."""
        self._closing = True
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self.shutdown())
        return self._shutdown_task


def install_signal_handlers(extractor: WebExtractor, loop: asyncio.AbstractEventLoop | None = None) -> None:
    """Shut the extractor down on SIGINT or SIGTERM, once."""
    loop = loop or asyncio.get_running_loop()
    signals = (signal.SIGINT, signal.SIGTERM)

    def on_signal(sig: signal.Signals) -> None:
        print(f"[extractor] Received {sig.name}, shutting down...")
        for s in signals:
            loop.remove_signal_handler(s)
        extractor.request_shutdown()

    for sig in signals:
        loop.add_signal_handler(sig, on_signal, sig)
