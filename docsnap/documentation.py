"""Heuristic extraction of API documentation from rendered pages.

Every structured field is described by an ordered list of selector
candidates, most specific first. The first candidate whose text is longer
than its min_length wins; otherwise the field keeps its empty default.
Differences between documentation sites are expressed as profile data,
not as separate code paths.
"""

import re
from typing import Callable, Literal, TypeVar

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, ConfigDict, Field
from soupsieve import SelectorSyntaxError

from .errors import SectionExtractionError
from .extract import select_first, text_of
from .types import (
    Constructor,
    DocumentationModel,
    Event,
    Example,
    Method,
    Parameter,
    Property,
    Returns,
)

T = TypeVar("T")

OPTIONAL_MARKER = "?"
CODE_TAGS = ["pre", "code"]
DEFAULT_EXAMPLE_LANGUAGE = "javascript"
LANGUAGE_CLASS = re.compile(r"language-(\w+)")
SINCE_LABEL = re.compile(r"^since\s*:?\s*", re.IGNORECASE)
EXTENDS_LABEL = re.compile(r"^extends\s*:?\s*", re.IGNORECASE)
INHERITANCE_SEPARATORS = re.compile(r"\s*(?:→|->|>|,)\s*")


class SelectorCandidate(BaseModel):
    """A selector plus the minimum text length its match must exceed."""

    model_config = ConfigDict(frozen=True)

    selector: str
    min_length: int = 0


class SectionLocator(BaseModel):
    """Finds a section container.

    scope="parent": the selector matches an anchor (usually a heading id)
    inside the section, so the section is its parent.
    scope="self": the selector matches the section itself.
    """

    model_config = ConfigDict(frozen=True)

    selector: str
    scope: Literal["parent", "self"] = "parent"


def candidates(*selectors: str, min_length: int = 0) -> list[SelectorCandidate]:
    return [SelectorCandidate(selector=s, min_length=min_length) for s in selectors]


def section(name: str, anchor_id: str) -> list[SectionLocator]:
    return [
        SectionLocator(selector=f"#{anchor_id}", scope="parent"),
        SectionLocator(selector=f'[data-section="{name}"]', scope="self"),
    ]


class ItemRules(BaseModel):
    """How to pull repeated items (properties, methods, events) out of a section."""

    locators: list[SectionLocator]
    # Tried in order; the first selector yielding named items wins
    item_selectors: list[str]
    name: list[SelectorCandidate]
    description: list[SelectorCandidate] = Field(default_factory=lambda: candidates(".description", "p"))


class DocumentationProfile(BaseModel):
    """Site heuristics and per-field selector candidates."""

    url_markers: list[str] = Field(default_factory=lambda: ["sapui5", "sap.com"])
    dom_markers: list[str] = Field(default_factory=lambda: ['[class*="sap"]'])

    class_name: list[SelectorCandidate] = Field(
        default_factory=lambda: candidates(
            ".sapUiDocumentationClassName", '[data-section="class-name"]', ".class-name"
        )
    )
    overview: list[SelectorCandidate] = Field(
        default_factory=lambda: candidates(
            ".sapUiDocumentationOverview",
            '[data-section="overview"]',
            ".overview",
            ".description",
            "p:first-of-type",
            min_length=20,
        )
    )
    inheritance: list[SectionLocator] = Field(
        default_factory=lambda: [
            SectionLocator(selector=".sapUiDocumentationInheritance", scope="self"),
            SectionLocator(selector='[data-section="inheritance"]', scope="self"),
            SectionLocator(selector=".inheritance", scope="self"),
            SectionLocator(selector=".extends", scope="self"),
        ]
    )
    constructor: list[SectionLocator] = Field(default_factory=lambda: section("constructor", "Constructor"))
    constructor_description: list[SelectorCandidate] = Field(default_factory=lambda: candidates(".description", "p"))

    properties: ItemRules = Field(
        default_factory=lambda: ItemRules(
            locators=section("properties", "Properties"),
            item_selectors=[".sapUiDocumentationProperty", '[data-item="property"]', '[class*="property"]'],
            name=candidates(".property-name", "h4", "h5"),
        )
    )
    methods: ItemRules = Field(
        default_factory=lambda: ItemRules(
            locators=section("methods", "Methods"),
            item_selectors=[".sapUiDocumentationMethod", '[data-item="method"]', '[class*="method"]'],
            name=candidates(".method-name", "h4", "h5"),
        )
    )
    events: ItemRules = Field(
        default_factory=lambda: ItemRules(
            locators=section("events", "Events"),
            item_selectors=[".sapUiDocumentationEvent", '[data-item="event"]', '[class*="event"]'],
            name=candidates(".event-name", "h4", "h5"),
        )
    )

    type: list[SelectorCandidate] = Field(default_factory=lambda: candidates(".type", '[class*="type"]'))
    default_value: list[SelectorCandidate] = Field(default_factory=lambda: candidates(".default", '[class*="default"]'))
    since: list[SelectorCandidate] = Field(default_factory=lambda: candidates(".since", '[class*="since"]'))
    deprecated: str = '.deprecated, [class*="deprecated"]'
    optional: str = '[class*="optional"]'
    returns_type: list[SelectorCandidate] = Field(
        default_factory=lambda: candidates(".returns .type", '[class*="return-type"]')
    )
    returns_description: list[SelectorCandidate] = Field(
        default_factory=lambda: candidates(".returns p", '[class*="return-desc"]')
    )

    example_selector: str = 'pre, code, .example, [class*="example"]'
    example_min_length: int = 10


# ---------------------------------------------------------------------------
# Selector helpers
# ---------------------------------------------------------------------------


def first_text(scope: Tag, options: list[SelectorCandidate]) -> str:
    """Text of the first candidate whose match is longer than its min_length."""
    for candidate in options:
        text = text_of(select_first(scope, candidate.selector))
        if len(text) > candidate.min_length:
            return text
    return ""


def locate_section(soup: Tag, locators: list[SectionLocator]) -> Tag | None:
    for locator in locators:
        anchor = select_first(soup, locator.selector)
        if anchor is None:
            continue
        if locator.scope == "parent" and anchor.parent is not None:
            return anchor.parent
        return anchor
    return None


def select_all(scope: Tag, selector: str) -> list[Tag]:
    try:
        return scope.select(selector)
    except SelectorSyntaxError as e:
        raise SectionExtractionError(f"Invalid selector '{selector}': {e}") from e


def drop_nested(elements: list[Tag]) -> list[Tag]:
    """Keep document order, minus elements nested in an earlier kept element."""
    kept: list[Tag] = []
    kept_ids: set[int] = set()
    for el in elements:
        if any(id(parent) in kept_ids for parent in el.parents):
            continue
        kept.append(el)
        kept_ids.add(id(el))
    return kept


def select_items(scope: Tag, selector: str, name: list[SelectorCandidate]) -> list[Tag]:
    """Named item elements in document order.

    A match holding two or more named matches is a list wrapper, not an item.
    A match nested inside another kept item belongs to that item.
    """
    named = [el for el in select_all(scope, selector) if first_text(el, name)]
    named_ids = {id(el) for el in named}

    def inner_count(el: Tag) -> int:
        return sum(1 for d in el.find_all(True) if id(d) in named_ids)

    return drop_nested([el for el in named if inner_count(el) < 2])


def prefer_code_blocks(elements: list[Tag]) -> list[Tag]:
    """Drop example wrappers that hold their own pre/code blocks."""
    return [el for el in elements if el.name in CODE_TAGS or el.find(CODE_TAGS) is None]


def own_rows(table: Tag) -> list[Tag]:
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def normalize_since(text: str) -> str | None:
    return SINCE_LABEL.sub("", text).strip() or None


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class DocumentationExtractor:
    """Builds a DocumentationModel from a parsed page. Never raises."""

    def __init__(self, profile: DocumentationProfile | None = None):
        self.profile = profile or DocumentationProfile()

    def matches(self, url: str, soup: BeautifulSoup) -> bool:
        """Does the URL or DOM look like a supported documentation site?"""
        lowered = url.lower()
        if any(marker in lowered for marker in self.profile.url_markers):
            return True
        return any(select_first(soup, marker) is not None for marker in self.profile.dom_markers)

    def extract(self, soup: BeautifulSoup) -> DocumentationModel:
        p = self.profile
        return DocumentationModel(
            class_name=self._section("class name", lambda: first_text(soup, p.class_name), "") or None,
            overview=self._section("overview", lambda: first_text(soup, p.overview), ""),
            constructor=self._section("constructor", lambda: self.constructor(soup), Constructor()),
            properties=self._section("properties", lambda: self.items(soup, p.properties, self.build_property), []),
            methods=self._section("methods", lambda: self.items(soup, p.methods, self.build_method), []),
            events=self._section("events", lambda: self.items(soup, p.events, self.build_event), []),
            examples=self._section("examples", lambda: self.examples(soup), []),
            inheritance=self._section("inheritance", lambda: self.inheritance(soup), []),
        )

    def _section(self, name: str, build: Callable[[], T], default: T) -> T:
        try:
            return build()
        except Exception as e:
            print(f"[documentation] WARN {name} skipped: {str(e)[:200]}")
            return default

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def constructor(self, soup: BeautifulSoup) -> Constructor:
        container = locate_section(soup, self.profile.constructor)
        if container is None:
            return Constructor()
        return Constructor(
            description=first_text(container, self.profile.constructor_description),
            since=normalize_since(first_text(container, self.profile.since)),
            parameters=self.parameters(container),
        )

    def items(self, soup: BeautifulSoup, rules: ItemRules, build: Callable[[Tag, ItemRules], T | None]) -> list[T]:
        container = locate_section(soup, rules.locators)
        if container is None:
            return []
        for item_selector in rules.item_selectors:
            results = []
            for el in select_items(container, item_selector, rules.name):
                item = build(el, rules)
                if item is not None:
                    results.append(item)
            if results:
                return results
        return []

    def build_property(self, el: Tag, rules: ItemRules) -> Property | None:
        name = first_text(el, rules.name)
        if not name:
            return None
        return Property(
            name=name,
            type=first_text(el, self.profile.type),
            default_value=first_text(el, self.profile.default_value) or None,
            description=first_text(el, rules.description),
            since=normalize_since(first_text(el, self.profile.since)),
            deprecated=select_first(el, self.profile.deprecated) is not None,
        )

    def build_method(self, el: Tag, rules: ItemRules) -> Method | None:
        name = first_text(el, rules.name)
        if not name:
            return None
        return Method(
            name=name,
            description=first_text(el, rules.description),
            parameters=self.parameters(el),
            returns=Returns(
                type=first_text(el, self.profile.returns_type),
                description=first_text(el, self.profile.returns_description),
            ),
            since=normalize_since(first_text(el, self.profile.since)),
            deprecated=select_first(el, self.profile.deprecated) is not None,
        )

    def build_event(self, el: Tag, rules: ItemRules) -> Event | None:
        name = first_text(el, rules.name)
        if not name:
            return None
        return Event(
            name=name,
            description=first_text(el, rules.description),
            parameters=self.parameters(el),
            since=normalize_since(first_text(el, self.profile.since)),
        )

    def parameters(self, scope: Tag) -> list[Parameter]:
        """Parameters from name/type/description tables; the first row is a header."""
        params = []
        for table in scope.find_all("table"):
            for row in own_rows(table)[1:]:
                cells = row.find_all("td")
                if len(cells) < 3:
                    continue
                raw_name = text_of(cells[0])
                name = raw_name.replace(OPTIONAL_MARKER, "").strip()
                if not name:
                    continue
                params.append(
                    Parameter(
                        name=name,
                        type=text_of(cells[1]),
                        description=text_of(cells[2]),
                        optional=OPTIONAL_MARKER in raw_name or select_first(row, self.profile.optional) is not None,
                    )
                )
        return params

    def examples(self, soup: BeautifulSoup) -> list[Example]:
        # Sitewide: example placement varies too much to scope by section
        results = []
        for el in drop_nested(prefer_code_blocks(select_all(soup, self.profile.example_selector))):
            code = text_of(el)
            if len(code) <= self.profile.example_min_length:
                continue
            description = (el.get("title") or el.get("data-description") or "").strip()
            results.append(Example(language=self._language(el), code=code, description=description or None))
        return results

    def _language(self, el: Tag) -> str:
        for tag in [el, *el.find_all("code")]:
            match = LANGUAGE_CLASS.search(" ".join(tag.get("class") or []))
            if match:
                return match.group(1)
        return DEFAULT_EXAMPLE_LANGUAGE

    def inheritance(self, soup: BeautifulSoup) -> list[str]:
        container = locate_section(soup, self.profile.inheritance)
        if container is None:
            return []
        names = [text_of(a) for a in container.find_all("a")]
        if not any(names):
            names = [text_of(li) for li in container.find_all("li")]
        if not any(names):
            names = INHERITANCE_SEPARATORS.split(EXTENDS_LABEL.sub("", text_of(container)))
        return [n.strip() for n in names if n.strip()]
