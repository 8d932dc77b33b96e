"""Type definitions for extraction requests and results."""

from datetime import datetime
from typing import Awaitable, Callable, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

FormatTarget = Literal["markdown", "json", "html", "text"]


class ExtractionOptions(BaseModel):
    """Per-request extraction options."""

    model_config = ConfigDict(frozen=True)

    selector: str | None = None
    wait_for_selector: str | None = None
    max_wait_time_ms: int = Field(default=10000, gt=0)
    navigation_timeout_ms: int | None = Field(default=None, gt=0)
    remove_selectors: list[str] = Field(default_factory=list)
    extract_images: bool = False
    extract_links: bool = False

    @property
    def navigation_timeout(self) -> int:
        return self.navigation_timeout_ms or self.max_wait_time_ms


class PageSnapshot(BaseModel):
    """Rendered markup captured from a single page visit."""

    url: str
    title: str = ""
    raw_html: str
    rendered_at: datetime
    user_agent: str = ""


class ImageRef(BaseModel):
    src: str
    alt: str = ""


class LinkRef(BaseModel):
    href: str
    text: str = ""


class Table(BaseModel):
    caption: str | None = None
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)


class Heading(BaseModel):
    level: int = Field(ge=1, le=6)
    text: str


class DocumentMetadata(BaseModel):
    timestamp: datetime
    user_agent: str = ""


# ---------------------------------------------------------------------------
# Documentation model
# ---------------------------------------------------------------------------


class Parameter(BaseModel):
    name: str
    type: str = ""
    description: str = ""
    optional: bool = False


class Constructor(BaseModel):
    description: str = ""
    since: str | None = None
    parameters: list[Parameter] = Field(default_factory=list)


class Property(BaseModel):
    name: str
    type: str = ""
    default_value: str | None = None
    description: str = ""
    since: str | None = None
    deprecated: bool = False


class Returns(BaseModel):
    type: str = ""
    description: str = ""


class Method(BaseModel):
    name: str
    description: str = ""
    parameters: list[Parameter] = Field(default_factory=list)
    returns: Returns = Field(default_factory=Returns)
    since: str | None = None
    deprecated: bool = False


class Event(BaseModel):
    name: str
    description: str = ""
    parameters: list[Parameter] = Field(default_factory=list)
    since: str | None = None


class Example(BaseModel):
    language: str
    code: str
    description: str | None = None


class DocumentationModel(BaseModel):
    """Structured API reference extracted from a documentation page."""

    class_name: str | None = None
    overview: str = ""
    constructor: Constructor = Field(default_factory=Constructor)
    properties: list[Property] = Field(default_factory=list)
    methods: list[Method] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)
    examples: list[Example] = Field(default_factory=list)
    inheritance: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return self == DocumentationModel()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ExtractedDocument(BaseModel):
    """Result of extracting a single URL."""

    url: str
    title: str = ""
    content: str = ""
    html: str | None = None
    images: list[ImageRef] | None = None
    links: list[LinkRef] | None = None
    tables: list[Table] = Field(default_factory=list)
    headings: list[Heading] = Field(default_factory=list)
    metadata: DocumentMetadata
    documentation: DocumentationModel | None = None


ErrorCode = Literal["NAVIGATION_FAILED", "INITIALIZATION_FAILED", "EXTRACTION_FAILED"]


class BatchItemError(BaseModel):
    """Failed batch item; the rest of the batch is unaffected."""

    url: str
    error_message: str
    code: ErrorCode = "EXTRACTION_FAILED"


BatchItemResult = ExtractedDocument | BatchItemError

# Type aliases
ExtractFn = Callable[[str], Awaitable[ExtractedDocument]]


class DocumentSink(Protocol):
    """Downstream consumer of extracted documents."""

    async def deliver(self, document: ExtractedDocument) -> None: ...
