"""URL utilities for page extraction."""

import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

# Suffixes a browser downloads or shows raw instead of rendering as a page
NON_PAGE_SUFFIXES = frozenset(
    ".pdf .zip .gz .tgz .7z .png .jpg .jpeg .gif .svg .webp .ico "
    ".mp3 .mp4 .webm .docx .xlsx .pptx .exe .dmg .css .js .woff2 .map".split()
)

MAX_FILENAME_CHARS = 50


def validate_url(url: str) -> str | None:
    """Check that a URL can be navigated to. Returns error message or None if valid."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return "Invalid URL format"

    if parsed.scheme not in ("http", "https"):
        return f"Invalid scheme '{parsed.scheme}'. Only http/https allowed"
    if not parsed.hostname:
        return "Missing hostname"
    suffix = PurePosixPath(unquote(parsed.path)).suffix.lower()
    if suffix in NON_PAGE_SUFFIXES:
        return f"URL points to a {suffix} file, not a page"
    return None


def safe_filename(url: str) -> str:
    """Derive a filesystem-safe stem from a URL.

    - Scheme dropped
    - Every non-alphanumeric character becomes "_"
    - Truncated to MAX_FILENAME_CHARS
    """
    stem = re.sub(r"^[a-zA-Z]+://", "", url.strip())
    stem = re.sub(r"[^a-zA-Z0-9]", "_", stem).strip("_")
    return stem[:MAX_FILENAME_CHARS] or "page"
