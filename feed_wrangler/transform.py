"""Feed rewriting: move everything after the first paragraph into content."""

from lxml import etree

from .models import (
    AtomFeed,
    ContentType,
    FeedDocument,
    RssFeed,
    TransformStats,
    UnknownFeed,
)
from .text_splitter import detect_content_type, split_at_first_paragraph, strip_html_tags

CONTENT_MODULE_NS = "http://purl.org/rss/1.0/modules/content/"
CONTENT_MODULE_PREFIX = "content"
CDATA_TERMINATOR = "]]>"


class ParseError(Exception):
    """Raised when the feed text is not well-formed XML."""

    def __init__(self, details: str):
        super().__init__(f"Failed to parse feed: {details}")
        self.details = details


def _make_parser() -> etree.XMLParser:
    # Strings are encoded to UTF-8 before parsing, so any declared encoding
    # in the prolog must be overridden.
    return etree.XMLParser(
        encoding="utf-8",
        strip_cdata=False,
        resolve_entities=False,
        no_network=True,
        remove_blank_text=False,
    )


def _local_name(element: etree._Element) -> str | None:
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _children(parent: etree._Element, name: str) -> list[etree._Element]:
    return [child for child in parent if _local_name(child) == name]


def _first_child(parent: etree._Element, name: str) -> etree._Element | None:
    for child in parent:
        if _local_name(child) == name:
            return child
    return None


def _sibling_tag(element: etree._Element, name: str) -> str:
    """Tag for `name` in the same namespace as `element`."""
    namespace = etree.QName(element).namespace
    return f"{{{namespace}}}{name}" if namespace else name


def _element_text(element: etree._Element | None) -> str | None:
    """Text of a leaf element; None when missing or holding child markup."""
    if element is None or len(element):
        return None
    return element.text or ""


def _has_text(text: str | None) -> bool:
    return bool(text and text.strip())


def _set_text(element: etree._Element, value: str) -> None:
    for child in list(element):
        element.remove(child)
    element.text = value


def _literal(body: str):
    # ']]>' cannot appear inside a CDATA section; escaped text is equivalent.
    if CDATA_TERMINATOR in body:
        return body
    return etree.CDATA(body)


def _insert_after(anchor: etree._Element, tag: str) -> etree._Element:
    parent = anchor.getparent()
    element = etree.SubElement(parent, tag)
    element.tail = anchor.tail
    anchor.addnext(element)
    return element


def _write_literal_field(
    parent: etree._Element,
    anchor: etree._Element,
    tag: str,
    body: str,
    attrib: dict[str, str] | None = None,
) -> None:
    """Write body as a literal block into `tag`, replacing any existing one."""
    field = parent.find(tag)
    if field is None:
        field = _insert_after(anchor, tag)
    else:
        field.clear(keep_tail=True)

    for key, value in (attrib or {}).items():
        field.set(key, value)
    field.text = _literal(body)


def parse_feed_document(feed_text: str) -> FeedDocument:
    """Parse feed text and classify it as Atom, RSS, or unknown.

    Raises:
        ParseError: If the text is not well-formed XML
    """
    try:
        root = etree.fromstring(feed_text.encode("utf-8"), _make_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        raise ParseError(str(e) or type(e).__name__) from e

    name = _local_name(root)
    if name == "feed":
        return AtomFeed(root=root, entries=_children(root, "entry"))

    if name == "rss":
        channel = _first_child(root, "channel")
        if channel is not None:
            items = _children(channel, "item")
            if items:
                return RssFeed(root=root, channel=channel, items=items)

    return UnknownFeed(root=root)


def serialize_feed_document(document: FeedDocument) -> str:
    """Serialize the whole document, prolog siblings included."""
    tree = document.root.getroottree()
    return etree.tostring(tree, xml_declaration=True, encoding="UTF-8").decode("utf-8")


def ensure_content_namespace(root: etree._Element) -> None:
    """Declare the RSS content module namespace on the root, once."""
    if CONTENT_MODULE_NS in root.nsmap.values():
        return

    # cleanup_namespaces drops unused declarations; keep every existing one
    # plus the new prefix, which nothing references yet.
    prefixes = {
        prefix
        for element in root.iter(etree.Element)
        for prefix in element.nsmap
        if prefix
    }
    prefixes.add(CONTENT_MODULE_PREFIX)
    etree.cleanup_namespaces(
        root,
        top_nsmap={CONTENT_MODULE_PREFIX: CONTENT_MODULE_NS},
        keep_ns_prefixes=sorted(prefixes),
    )


def rewrite_atom_entry(entry: etree._Element) -> tuple[bool, bool]:
    """Rewrite one Atom entry in place.

    Returns:
        (changed, split) flags
    """
    summary = _first_child(entry, "summary")
    text = _element_text(summary)
    if not _has_text(text):
        return False, False

    split = split_at_first_paragraph(text)
    cleaned = strip_html_tags(split.first_paragraph)
    changed = cleaned != text
    summary.text = cleaned

    if not split.second_part:
        return changed, False

    content_type = detect_content_type(split.second_part)
    if content_type is ContentType.TEXT:
        content_type = ContentType.HTML

    _write_literal_field(
        entry,
        summary,
        _sibling_tag(summary, "content"),
        split.second_part,
        {"type": content_type.value},
    )
    return True, True


def rewrite_rss_item(item: etree._Element, root: etree._Element) -> tuple[bool, bool]:
    """Rewrite one RSS item in place, keeping summary and description in sync.

    Returns:
        (changed, split) flags
    """
    summary = _first_child(item, "summary")
    description = _first_child(item, "description")

    summary_text = _element_text(summary)
    text = summary_text if _has_text(summary_text) else _element_text(description)
    if not _has_text(text):
        return False, False

    split = split_at_first_paragraph(text)
    cleaned = strip_html_tags(split.first_paragraph)

    changed = summary is None or description is None
    changed = changed or _element_text(summary) != cleaned
    changed = changed or _element_text(description) != cleaned

    if summary is None:
        summary = _insert_after(description, _sibling_tag(description, "summary"))
    if description is None:
        description = _insert_after(summary, _sibling_tag(summary, "description"))
    _set_text(summary, cleaned)
    _set_text(description, cleaned)

    if not split.second_part:
        return changed, False

    ensure_content_namespace(root)
    anchor = description if item.index(description) > item.index(summary) else summary
    _write_literal_field(
        item,
        anchor,
        f"{{{CONTENT_MODULE_NS}}}encoded",
        split.second_part,
    )
    return True, True


def process_feed_with_stats(feed_text: str) -> tuple[str, TransformStats]:
    """Transform a feed and report what was touched.

    The input text is returned verbatim when nothing needed rewriting.

    Raises:
        ParseError: If the text is not well-formed XML
    """
    document = parse_feed_document(feed_text)

    if isinstance(document, AtomFeed):
        stats = TransformStats(dialect="atom")
        results = (rewrite_atom_entry(entry) for entry in document.entries)
    elif isinstance(document, RssFeed):
        stats = TransformStats(dialect="rss")
        results = (rewrite_rss_item(item, document.root) for item in document.items)
    else:
        return feed_text, TransformStats(dialect="unknown")

    for changed, split in results:
        stats.entries_seen += 1
        if changed:
            stats.entries_rewritten += 1
        if split:
            stats.entries_split += 1

    if not stats.entries_rewritten:
        return feed_text, stats

    return serialize_feed_document(document), stats


def process_feed(feed_text: str) -> str:
    """Split every entry's description at its first paragraph.

    Raises:
        ParseError: If the text is not well-formed XML
    """
    feed_xml, _ = process_feed_with_stats(feed_text)
    return feed_xml
