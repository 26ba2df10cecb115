"""Data models for Feed Wrangler."""

from dataclasses import dataclass, field
from enum import Enum

from lxml import etree


class ContentType(str, Enum):
    """Markup flavour of a relocated content block."""

    TEXT = "text"
    HTML = "html"
    XHTML = "xhtml"


@dataclass(frozen=True)
class ParagraphSplit:
    """Result of splitting a description at its first paragraph."""

    first_paragraph: str
    second_part: str


@dataclass
class AtomFeed:
    """Atom document: `feed` root with `entry` children."""

    root: etree._Element
    entries: list[etree._Element] = field(default_factory=list)


@dataclass
class RssFeed:
    """RSS 2.0 document: `rss` root, one `channel`, `item` children."""

    root: etree._Element
    channel: etree._Element
    items: list[etree._Element] = field(default_factory=list)


@dataclass
class UnknownFeed:
    """Anything that is neither Atom nor RSS with items."""

    root: etree._Element


FeedDocument = AtomFeed | RssFeed | UnknownFeed


@dataclass
class TransformStats:
    """Counters gathered while rewriting one document."""

    dialect: str
    entries_seen: int = 0
    entries_rewritten: int = 0
    entries_split: int = 0
