"""docsnap - rendered page extraction with documentation-aware enrichment."""

from .types import (
    ExtractionOptions,
    PageSnapshot,
    ExtractedDocument,
    DocumentationModel,
    BatchItemError,
    BatchItemResult,
    DocumentSink,
    FormatTarget,
)
from .errors import (
    ExtractionError,
    InitializationError,
    NavigationError,
    ShutdownError,
    SectionExtractionError,
    FormattingError,
    DeliveryError,
)
from .session import RenderSession
from .fetch import PageFetcher
from .extract import ContentExtractor
from .documentation import DocumentationExtractor, DocumentationProfile
from .batch import BatchScheduler
from .formatter import format_document
from .core import WebExtractor, install_signal_handlers

__all__ = [
    # Types
    "ExtractionOptions",
    "PageSnapshot",
    "ExtractedDocument",
    "DocumentationModel",
    "BatchItemError",
    "BatchItemResult",
    "DocumentSink",
    "FormatTarget",
    # Errors
    "ExtractionError",
    "InitializationError",
    "NavigationError",
    "ShutdownError",
    "SectionExtractionError",
    "FormattingError",
    "DeliveryError",
    # Pipeline
    "RenderSession",
    "PageFetcher",
    "ContentExtractor",
    "DocumentationExtractor",
    "DocumentationProfile",
    "BatchScheduler",
    "format_document",
    # Core
    "WebExtractor",
    "install_signal_handlers",
]
