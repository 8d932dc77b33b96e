"""Shared fixtures: page snapshots and Playwright fakes."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from docsnap.types import DocumentMetadata, ExtractedDocument, PageSnapshot

RENDERED_AT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
TEST_USER_AGENT = "Mozilla/5.0 (test)"


def make_snapshot(raw_html: str, url: str = "https://example.com/page", title: str = "") -> PageSnapshot:
    return PageSnapshot(
        url=url,
        title=title,
        raw_html=raw_html,
        rendered_at=RENDERED_AT,
        user_agent=TEST_USER_AGENT,
    )


def make_document(url: str = "https://example.com/page", **fields) -> ExtractedDocument:
    return ExtractedDocument(
        url=url,
        metadata=DocumentMetadata(timestamp=RENDERED_AT, user_agent=TEST_USER_AGENT),
        **fields,
    )


def make_page(html: str = "<html><body>ok</body></html>", title: str = "Test Page") -> MagicMock:
    """A Playwright Page stand-in with async methods."""
    page = MagicMock()
    page.route = AsyncMock()
    page.goto = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.content = AsyncMock(return_value=html)
    page.title = AsyncMock(return_value=title)
    page.evaluate = AsyncMock(return_value=TEST_USER_AGENT)
    page.close = AsyncMock()
    return page


def make_session(page: MagicMock | None = None) -> MagicMock:
    """A RenderSession stand-in handing out the given page."""
    session = MagicMock()
    session.is_started = True
    session.ensure_started = AsyncMock()
    session.new_page = AsyncMock(return_value=page or make_page())
    session.shutdown = AsyncMock()
    return session


@pytest.fixture
def page():
    return make_page()


@pytest.fixture
def session(page):
    return make_session(page)
