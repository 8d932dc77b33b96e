"""Renderer session: one headless Chromium shared by every request."""

import asyncio

from playwright.async_api import Browser, Page, Playwright, async_playwright

from .errors import InitializationError

# Fixed launch configuration for containerized execution
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class RenderSession:
    """Owns the Playwright driver and browser process.

    Started lazily and reused across requests. Pages are created per request
    and never pooled; the session keeps no per-page state.
    """

    def __init__(self, headless: bool = True, launch_args: list[str] | None = None):
        self.headless = headless
        self.launch_args = list(launch_args if launch_args is not None else LAUNCH_ARGS)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()

    @property
    def is_started(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def ensure_started(self) -> None:
        """Launch the browser if it is not already running."""
        if self.is_started:
            return
        async with self._lock:
            if self.is_started:
                return
            # Browser crashed or was closed underneath us
            if self._browser is not None or self._playwright is not None:
                await self._teardown()

            print("[session] Launching Chromium...")
            try:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless,
                    args=self.launch_args,
                )
            except Exception as e:
                print(f"[session] FAIL launch: {str(e)[:200]}")
                await self._teardown()
                raise InitializationError(f"Failed to launch browser: {e}") from e
            print("[session] OK browser started")

    async def new_page(self, **context_options) -> Page:
        """Open a fresh page in its own browser context."""
        if not self.is_started:
            raise InitializationError("Render session is not started; call ensure_started() first")
        try:
            return await self._browser.new_page(**context_options)
        except Exception as e:
            raise InitializationError(f"Failed to create page: {e}") from e

    async def shutdown(self) -> None:
        """Close the browser and stop Playwright. Safe to call repeatedly."""
        async with self._lock:
            if self._browser is None and self._playwright is None:
                return
            print("[session] Closing browser...")
            await self._teardown()
            print("[session] OK browser closed")

    async def _teardown(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                print(f"[session] WARN browser close failed: {str(e)[:200]}")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                print(f"[session] WARN playwright stop failed: {str(e)[:200]}")
