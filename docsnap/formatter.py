"""Render an ExtractedDocument as markdown, JSON, HTML or a plain-text report.

Every function here is pure: the same document always renders to the same
string. Timestamps come from the document's metadata, never the clock.
"""

import html
import json
import re
from typing import Callable

from .errors import FormattingError
from .types import (
    DocumentationModel,
    ExtractedDocument,
    FormatTarget,
    Parameter,
)

RULE = "=" * 80
INHERITANCE_ARROW = " → "

# Fixed, non-semantic markdown-to-HTML transform
HTML_RULES = [
    (re.compile(r"^# (.*)$", re.MULTILINE), r"<h1>\1</h1>"),
    (re.compile(r"^## (.*)$", re.MULTILINE), r"<h2>\1</h2>"),
    (re.compile(r"^### (.*)$", re.MULTILINE), r"<h3>\1</h3>"),
    (re.compile(r"\*\*(.*?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"\*(.*?)\*"), r"<em>\1</em>"),
    (re.compile(r"\n"), "<br>"),
]


# =============================================================================
# Markdown
# =============================================================================


def _parameter_line(param: Parameter, indent: str = "") -> str:
    name = f"{param.name}?" if param.optional else param.name
    line = f"{indent}- `{name}`"
    if param.type:
        line += f" ({param.type})"
    if param.description:
        line += f": {param.description}"
    return line


def _overview(doc: DocumentationModel) -> list[str]:
    if not doc.overview:
        return []
    return ["## Overview", "", doc.overview, ""]


def _constructor(doc: DocumentationModel) -> list[str]:
    ctor = doc.constructor
    if not ctor.description and not ctor.since and not ctor.parameters:
        return []
    lines = ["## Constructor", ""]
    if ctor.description:
        lines += [ctor.description, ""]
    if ctor.since:
        lines += [f"**Since:** {ctor.since}", ""]
    if ctor.parameters:
        lines += ["### Parameters", ""]
        lines += [_parameter_line(p) for p in ctor.parameters]
        lines.append("")
    return lines


def _properties(doc: DocumentationModel) -> list[str]:
    if not doc.properties:
        return []
    lines = ["## Properties", ""]
    for prop in doc.properties:
        lines.append(f"### {prop.name}" + (f" ({prop.type})" if prop.type else ""))
        lines.append("")
        if prop.default_value:
            lines.append(f"**Default:** {prop.default_value}")
        if prop.description:
            lines.append(prop.description)
        if prop.since:
            lines.append(f"**Since:** {prop.since}")
        if prop.deprecated:
            lines.append("*Deprecated*")
        lines.append("")
    return lines


def _methods(doc: DocumentationModel) -> list[str]:
    if not doc.methods:
        return []
    lines = ["## Methods", ""]
    for method in doc.methods:
        lines += [f"### {method.name}()", ""]
        if method.description:
            lines.append(method.description)
        if method.parameters:
            lines += ["", "**Parameters:**"]
            lines += [_parameter_line(p) for p in method.parameters]
        if method.returns.type:
            lines += ["", f"**Returns:** {method.returns.type}"]
            if method.returns.description:
                lines.append(method.returns.description)
        if method.since:
            lines += ["", f"**Since:** {method.since}"]
        if method.deprecated:
            lines += ["", "*Deprecated*"]
        lines.append("")
    return lines


def _events(doc: DocumentationModel) -> list[str]:
    if not doc.events:
        return []
    lines = ["## Events", ""]
    for event in doc.events:
        lines += [f"### {event.name}", ""]
        if event.description:
            lines.append(event.description)
        if event.parameters:
            lines += ["", "**Parameters:**"]
            lines += [_parameter_line(p) for p in event.parameters]
        if event.since:
            lines += ["", f"**Since:** {event.since}"]
        lines.append("")
    return lines


def _examples(doc: DocumentationModel) -> list[str]:
    if not doc.examples:
        return []
    lines = ["## Examples", ""]
    for i, example in enumerate(doc.examples, 1):
        lines += [f"### Example {i} ({example.language})", ""]
        if example.description:
            lines += [example.description, ""]
        lines += [f"```{example.language}", example.code, "```", ""]
    return lines


def _inheritance(doc: DocumentationModel) -> list[str]:
    if not doc.inheritance:
        return []
    return ["## Inheritance", "", "Extends: " + INHERITANCE_ARROW.join(doc.inheritance), ""]


DOCUMENTATION_SECTIONS: list[Callable[[DocumentationModel], list[str]]] = [
    _overview,
    _constructor,
    _properties,
    _methods,
    _events,
    _examples,
    _inheritance,
]


def _render_sections(lines: list[str], sections: list[Callable], source) -> None:
    """Append each section's lines, converting render failures to FormattingError."""
    for render in sections:
        try:
            lines.extend(render(source))
        except (AttributeError, TypeError, ValueError) as e:
            raise FormattingError(f"{render.__name__.lstrip('_')} section: {e}") from e


def to_markdown(document: ExtractedDocument) -> str:
    """Canonical rendering: documentation sections, or the page content."""
    doc = document.documentation
    lines: list[str] = []
    try:
        if doc is None or doc.is_empty():
            lines += [f"# {document.title or document.url}", "", "## Content", "", document.content]
        else:
            lines += [f"# {doc.class_name or document.title or document.url}", ""]
            _render_sections(lines, DOCUMENTATION_SECTIONS, doc)
    except FormattingError as e:
        print(f"[format] WARN markdown: {str(e)[:200]}")
        lines += ["", f"**Formatting error:** {e}"]
    return "\n".join(lines).rstrip("\n") + "\n"


# =============================================================================
# JSON / HTML
# =============================================================================


def to_json(document: ExtractedDocument) -> str:
    try:
        return document.model_dump_json(indent=2, exclude_none=True)
    except ValueError as e:
        error = FormattingError(f"JSON serialization failed: {e}")
        print(f"[format] WARN json: {str(error)[:200]}")
        return json.dumps({"error": str(error)}, indent=2)


def to_html(document: ExtractedDocument) -> str:
    """Markdown form, escaped, with headings, emphasis and line breaks converted."""
    out = html.escape(to_markdown(document), quote=False)
    for pattern, replacement in HTML_RULES:
        out = pattern.sub(replacement, out)
    return out


# =============================================================================
# Plain-text report
# =============================================================================


def _banner(title: str) -> list[str]:
    return [RULE, title, RULE]


def _report_header(document: ExtractedDocument) -> list[str]:
    return [
        f"EXTRACTION RESULT - {document.metadata.timestamp.isoformat()}",
        f"URL: {document.url}",
        f"Title: {document.title or 'N/A'}",
        f"Length: {len(document.content)} characters",
        "",
        *_banner("EXTRACTED CONTENT:"),
        "",
        document.content or "No content extracted",
        "",
    ]


def _report_images(document: ExtractedDocument) -> list[str]:
    if not document.images:
        return []
    lines = _banner(f"IMAGES FOUND ({len(document.images)}):")
    for i, img in enumerate(document.images, 1):
        lines.append(f"{i}. {img.src}")
        if img.alt:
            lines.append(f"   Alt: {img.alt}")
        lines.append("")
    return lines


def _report_links(document: ExtractedDocument) -> list[str]:
    if not document.links:
        return []
    lines = _banner(f"LINKS FOUND ({len(document.links)}):")
    for i, link in enumerate(document.links, 1):
        lines += [f"{i}. {link.text}", f"   URL: {link.href}", ""]
    return lines


def _report_tables(document: ExtractedDocument) -> list[str]:
    if not document.tables:
        return []
    lines = _banner(f"TABLES FOUND ({len(document.tables)}):")
    for i, table in enumerate(document.tables, 1):
        lines.append(f"TABLE {i}:")
        if table.caption:
            lines.append(f"Caption: {table.caption}")
        if table.headers:
            header = " | ".join(table.headers)
            lines += [f"Headers: {header}", "-" * len(header)]
        lines += [" | ".join(row) for row in table.rows]
        lines.append("")
    return lines


def _report_headings(document: ExtractedDocument) -> list[str]:
    lines = _banner("HEADINGS FOUND:")
    if not document.headings:
        return lines + ["No headings found", ""]
    return lines + [f"H{h.level}: {h.text}" for h in document.headings] + [""]


def _report_metadata(document: ExtractedDocument) -> list[str]:
    return _banner("METADATA:") + [document.metadata.model_dump_json(indent=2)]


REPORT_SECTIONS: list[Callable[[ExtractedDocument], list[str]]] = [
    _report_header,
    _report_images,
    _report_links,
    _report_tables,
    _report_headings,
    _report_metadata,
]


def to_text(document: ExtractedDocument) -> str:
    lines: list[str] = []
    try:
        _render_sections(lines, REPORT_SECTIONS, document)
    except FormattingError as e:
        print(f"[format] WARN text: {str(e)[:200]}")
        lines += ["", f"Formatting error: {e}"]
    return "\n".join(lines) + "\n"


FORMATTERS: dict[str, Callable[[ExtractedDocument], str]] = {
    "markdown": to_markdown,
    "json": to_json,
    "html": to_html,
    "text": to_text,
}

FILE_EXTENSIONS: dict[str, str] = {
    "markdown": "md",
    "json": "json",
    "html": "html",
    "text": "txt",
}


def format_document(document: ExtractedDocument, target: FormatTarget = "markdown") -> str:
    """
    Render a document into the requested output format.

    Args:
        document: Extraction result, with or without a documentation model
        target: One of "markdown", "json", "html", "text"

    Returns:
        Formatted string. Rendering failures are reported inside the string.

    Raises:
        ValueError: If target is not a supported format
    """
    formatter = FORMATTERS.get(target)
    if formatter is None:
        raise ValueError(f"Unknown format: {target!r} (expected one of {', '.join(FORMATTERS)})")
    return formatter(document)
