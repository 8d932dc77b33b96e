"""Generic content extraction from rendered markup."""

import re

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from .types import (
    DocumentMetadata,
    ExtractedDocument,
    ExtractionOptions,
    Heading,
    ImageRef,
    LinkRef,
    PageSnapshot,
    Table,
)

# Never rendered, so never part of visible text
INVISIBLE_TAGS = ["script", "style", "noscript", "template"]
HEADING_TAG = re.compile(r"^h([1-6])$")


def text_of(element: Tag | None) -> str:
    """Trimmed text content of an element ("" for None)."""
    if element is None:
        return ""
    return element.get_text().strip()


def select_first(scope: Tag, selector: str) -> Tag | None:
    """First element matching selector, or None if no match or the selector is invalid."""
    try:
        return scope.select_one(selector)
    except SelectorSyntaxError:
        print(f"[extract] WARN invalid selector: {selector}")
        return None


class ContentExtractor:
    """Builds the generic part of an ExtractedDocument."""

    def __init__(self, parser: str = "html.parser"):
        self.parser = parser

    def prepare(self, raw_html: str, remove_selectors: list[str] | None = None) -> BeautifulSoup:
        """Parse markup and strip removed elements.

        Removal is destructive: every later step, documentation extraction
        included, sees the stripped tree.
        """
        soup = BeautifulSoup(raw_html, self.parser)
        for el in soup.find_all(INVISIBLE_TAGS):
            el.decompose()

        for selector in remove_selectors or []:
            try:
                matches = soup.select(selector)
            except SelectorSyntaxError:
                print(f"[extract] WARN invalid remove selector: {selector}")
                continue
            for el in matches:
                el.decompose()
        return soup

    def extract(self, soup: BeautifulSoup, snapshot: PageSnapshot, options: ExtractionOptions) -> ExtractedDocument:
        """Extract content, headings, tables and (if requested) images and links."""
        content, html = self._scoped_content(soup, options.selector)

        title = snapshot.title or text_of(soup.title)
        return ExtractedDocument(
            url=snapshot.url,
            title=title,
            content=content,
            html=html,
            images=self.images(soup) if options.extract_images else None,
            links=self.links(soup) if options.extract_links else None,
            tables=self.tables(soup),
            headings=self.headings(soup),
            metadata=DocumentMetadata(timestamp=snapshot.rendered_at, user_agent=snapshot.user_agent),
        )

    def _scoped_content(self, soup: BeautifulSoup, selector: str | None) -> tuple[str, str | None]:
        if selector:
            element = select_first(soup, selector)
            if element is not None:
                return text_of(element), element.decode_contents()
            print(f"[extract] WARN selector not found: {selector}, using whole document")
        return text_of(soup.body or soup), None

    def images(self, soup: BeautifulSoup) -> list[ImageRef]:
        results = []
        for img in soup.find_all("img"):
            src = (img.get("src") or "").strip()
            if src:
                results.append(ImageRef(src=src, alt=(img.get("alt") or "").strip()))
        return results

    def links(self, soup: BeautifulSoup) -> list[LinkRef]:
        results = []
        for a in soup.find_all("a"):
            href = (a.get("href") or "").strip()
            if href:
                results.append(LinkRef(href=href, text=text_of(a)))
        return results

    def headings(self, soup: BeautifulSoup) -> list[Heading]:
        results = []
        for el in soup.find_all(HEADING_TAG):
            text = text_of(el)
            if text:
                level = int(HEADING_TAG.match(el.name).group(1))
                results.append(Heading(level=level, text=text))
        return results

    def tables(self, soup: BeautifulSoup) -> list[Table]:
        results = []
        for table in soup.find_all("table"):
            # Rows of nested tables belong to those tables
            rows = [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]
            cells = [[text_of(c) for c in tr.find_all(["th", "td"], recursive=False)] for tr in rows]
            cells = [row for row in cells if row]

            caption = text_of(table.find("caption", recursive=False)) or None
            if not cells:
                results.append(Table(caption=caption))
                continue
            results.append(Table(caption=caption, headers=cells[0], rows=cells[1:]))
        return results
