"""Paragraph splitting and markup classification for feed descriptions."""

import re

from .models import ContentType, ParagraphSplit

PARAGRAPH_TAG_RE = re.compile(r"<p[^>]*>([\s\S]*?)</p>", re.IGNORECASE)
BLANK_LINES_RE = re.compile(r"\n\n+")
XHTML_WRAPPER_RE = re.compile(r"<div[^>]*>[\s\S]*</div>", re.IGNORECASE)
HTML_TAG_RE = re.compile(r"<[a-z]+[^>]*>", re.IGNORECASE)
ANY_TAG_RE = re.compile(r"<[^>]*>")


def split_at_first_paragraph(text: str) -> ParagraphSplit:
    """Split text at the first paragraph boundary.

    A ``<p>...</p>`` element wins over blank-line separated paragraphs.
    Everything after the first boundary is returned as one block, untouched
    apart from trimming.

    Args:
        text: Raw description text, possibly empty

    Returns:
        ParagraphSplit with an empty second part when no boundary was found
    """
    if not text or not text.strip():
        return ParagraphSplit(first_paragraph=text, second_part="")

    normalized = text.replace("\r\n", "\n")

    match = PARAGRAPH_TAG_RE.search(normalized)
    if match:
        return ParagraphSplit(
            first_paragraph=match.group(0).strip(),
            second_part=normalized[match.end() :].strip(),
        )

    parts = BLANK_LINES_RE.split(normalized)
    if len(parts) > 1:
        return ParagraphSplit(
            first_paragraph=parts[0].strip(),
            second_part="\n\n".join(parts[1:]).strip(),
        )

    return ParagraphSplit(first_paragraph=text.strip(), second_part="")


def detect_content_type(content: str) -> ContentType:
    """Classify content as plain text, HTML, or a single XHTML div wrapper."""
    trimmed = content.strip()

    if XHTML_WRAPPER_RE.fullmatch(trimmed):
        return ContentType.XHTML

    if HTML_TAG_RE.search(trimmed):
        return ContentType.HTML

    return ContentType.TEXT


def strip_html_tags(text: str) -> str:
    """Remove all tags, leaving plain text. Entities are left as-is."""
    return ANY_TAG_RE.sub("", text).strip()
