"""Per-request page lifecycle: open, navigate, wait, capture, close."""

from datetime import datetime, timezone

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Route

from .errors import NavigationError
from .session import RenderSession
from .types import ExtractionOptions, PageSnapshot

VIEWPORT = {"width": 1920, "height": 1080}
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
# Extraction reads the post-script DOM, so documents, scripts and XHR always load
BLOCKED_RESOURCE_TYPES = frozenset({"stylesheet", "font"})
DEFAULT_SETTLE_TIME_MS = 2000


async def block_resources(route: Route) -> None:
    """Abort stylesheet and font requests, let everything else through."""
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class PageFetcher:
    """Turns (url, options) into a PageSnapshot using a RenderSession."""

    def __init__(self, session: RenderSession, settle_time_ms: int = DEFAULT_SETTLE_TIME_MS):
        self.session = session
        self.settle_time_ms = settle_time_ms

    async def fetch(self, url: str, options: ExtractionOptions) -> PageSnapshot:
        """
        Render a page and capture its markup.

        Args:
            url: Page to navigate to
            options: Extraction options (timeouts and optional wait selector)

        Raises:
            InitializationError: If the session cannot provide a page
            NavigationError: If navigation fails or times out
        """
        page = await self.session.new_page(viewport=VIEWPORT, user_agent=USER_AGENT)
        try:
            print(f"[fetch] {url}")
            try:
                await page.route("**/*", block_resources)
                await page.goto(url, wait_until="domcontentloaded", timeout=options.navigation_timeout)
            except PlaywrightError as e:
                print(f"[fetch] FAIL {url}: {str(e)[:200]}")
                raise NavigationError(f"Navigation to {url} failed: {e}") from e

            if options.wait_for_selector:
                try:
                    await page.wait_for_selector(options.wait_for_selector, timeout=options.max_wait_time_ms)
                except PlaywrightError:
                    # Pages legitimately omit optional content
                    print(f"[fetch] WARN selector not found: {options.wait_for_selector}")

            # Grace period for deferred script rendering
            if self.settle_time_ms > 0:
                await page.wait_for_timeout(self.settle_time_ms)

            try:
                raw_html = await page.content()
                title = await page.title()
                user_agent = await page.evaluate("() => navigator.userAgent")
            except PlaywrightError as e:
                print(f"[fetch] FAIL capture {url}: {str(e)[:200]}")
                raise NavigationError(f"Failed to capture {url}: {e}") from e

            print(f"[fetch] OK {url} ({len(raw_html):,} chars)")
            return PageSnapshot(
                url=url,
                title=(title or "").strip(),
                raw_html=raw_html,
                rendered_at=datetime.now(timezone.utc),
                user_agent=user_agent or "",
            )
        finally:
            try:
                await page.close()
            except PlaywrightError as e:
                print(f"[fetch] WARN page close failed: {str(e)[:200]}")
