"""Exception taxonomy for the extraction pipeline.

Only InitializationError, NavigationError and ShutdownError escape an
extraction call. The others are raised and caught inside the component that owns them.
"""


class ExtractionError(Exception):
    """Base class for extraction errors."""

    code = "EXTRACTION_FAILED"


class InitializationError(ExtractionError):
    """Renderer could not be launched or a page could not be created."""

    code = "INITIALIZATION_FAILED"


class NavigationError(ExtractionError):
    """Target URL unreachable, rejected, or navigation timed out."""

    code = "NAVIGATION_FAILED"


class ShutdownError(ExtractionError):
    """Extraction refused because the extractor is shutting down."""

    code = "SHUTTING_DOWN"


class SectionExtractionError(ExtractionError):
    """A documentation section could not be derived."""


class FormattingError(ExtractionError):
    """A document could not be serialized to the requested format."""


class DeliveryError(ExtractionError):
    """Downstream sink rejected or failed to receive a document."""
