"""Atom feed parsing for Splunk REST responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

from lxml import etree
from pydantic import BaseModel, Field

from .names import ResourceName

if TYPE_CHECKING:
    from .context import Context

ATOM_NS = "http://www.w3.org/2005/Atom"
SPLUNK_NS = "http://dev.splunk.com/ns/rest"
OPENSEARCH_NS = "http://a9.com/-/spec/opensearch/1.1/"

NAMESPACES = {"atom": ATOM_NS, "s": SPLUNK_NS, "opensearch": OPENSEARCH_NS}


class AtomMessage(BaseModel):
    """A server message attached to a feed."""

    type: str = Field(description="Message severity", examples=["ERROR", "WARN", "INFO"])
    text: str = Field(description="Message text")


class AtomEntry(BaseModel):
    """One ``<entry>`` of a Splunk Atom feed."""

    title: str = Field(description="Entity name", examples=["_audit"])
    id: str = Field(
        description="Entity URL", examples=["https://localhost:8089/services/data/indexes/_audit"]
    )
    updated: str = Field(default="", description="Last update timestamp as sent")
    published: str | None = Field(default=None)
    author: str | None = Field(default=None)
    links: dict[str, str] = Field(
        default_factory=dict, description="Absolute link URLs keyed by ``rel``"
    )
    content: dict[str, Any] = Field(
        default_factory=dict, description="Decoded ``<s:dict>`` content"
    )


class AtomFeed(BaseModel):
    """A parsed Splunk Atom ``<feed>`` document.

    Paging fields come from the OpenSearch elements Splunk adds to every
    collection listing and are ``None`` when a feed does not carry them.
    """

    resource: str = Field(
        description="Resource the feed was fetched from", examples=["data/indexes"]
    )
    title: str = ""
    id: str = ""
    updated: str = ""
    author: str | None = None
    generator_version: str | None = None
    links: dict[str, str] = Field(default_factory=dict)
    total_results: int | None = None
    items_per_page: int | None = None
    start_index: int | None = None
    messages: list[AtomMessage] = Field(default_factory=list)
    entries: list[AtomEntry] = Field(default_factory=list)

    @classmethod
    def parse(
        cls, context: Context, resource_name: ResourceName, document: etree._Element
    ) -> AtomFeed:
        """Build a feed from the root element of a response document.

        Relative links are resolved against the context's base URL.
        """
        if _local(document.tag) != "feed" or etree.QName(document).namespace != ATOM_NS:
            raise ValueError(f"Expected an Atom feed for {resource_name}, got <{document.tag}>")

        base = str(context)
        generator = document.find("atom:generator", NAMESPACES)
        return cls(
            resource=str(resource_name),
            title=_text(document, "atom:title"),
            id=_text(document, "atom:id"),
            updated=_text(document, "atom:updated"),
            author=_text(document, "atom:author/atom:name") or None,
            generator_version=generator.get("version") if generator is not None else None,
            links=_links(document, base),
            total_results=_int_or_none(document, "opensearch:totalResults"),
            items_per_page=_int_or_none(document, "opensearch:itemsPerPage"),
            start_index=_int_or_none(document, "opensearch:startIndex"),
            messages=[
                AtomMessage(type=msg.get("type", ""), text=(msg.text or "").strip())
                for msg in document.iterfind("s:messages/s:msg", NAMESPACES)
            ],
            entries=[_entry(node, base) for node in document.iterfind("atom:entry", NAMESPACES)],
        )

    @classmethod
    def from_string(
        cls, context: Context, resource_name: ResourceName, payload: str | bytes
    ) -> AtomFeed:
        """Parse a feed from raw XML text."""
        if isinstance(payload, str):
            payload = payload.strip().encode()
        try:
            root = etree.fromstring(payload)
        except etree.XMLSyntaxError as exc:
            raise ValueError(f"Invalid Atom payload for {resource_name}") from exc
        return cls.parse(context, resource_name, root)


def _entry(node: etree._Element, base: str) -> AtomEntry:
    content = node.find("atom:content", NAMESPACES)
    return AtomEntry(
        title=_text(node, "atom:title"),
        id=_text(node, "atom:id"),
        updated=_text(node, "atom:updated"),
        published=_text(node, "atom:published") or None,
        author=_text(node, "atom:author/atom:name") or None,
        links=_links(node, base),
        content=_content(content) if content is not None else {},
    )


def _content(node: etree._Element) -> dict[str, Any]:
    first = next(iter(node), None)
    if first is None:
        text = (node.text or "").strip()
        return {"text": text} if text else {}
    value = _value(first)
    if isinstance(value, dict):
        return value
    return {"value": value}


def _value(node: etree._Element) -> Any:
    """Decode an ``s:dict`` / ``s:list`` / text node into Python values."""
    tag = _local(node.tag)
    if tag == "dict":
        return {key.get("name", ""): _key_value(key) for key in node.iterfind("s:key", NAMESPACES)}
    if tag == "list":
        return [_key_value(item) for item in node.iterfind("s:item", NAMESPACES)]
    return (node.text or "").strip() or None


def _key_value(node: etree._Element) -> Any:
    child = next(iter(node), None)
    if child is not None and _local(child.tag) in {"dict", "list"}:
        return _value(child)
    text = node.text
    return text.strip() if text is not None else None


def _links(node: etree._Element, base: str) -> dict[str, str]:
    links: dict[str, str] = {}
    for link in node.iterfind("atom:link", NAMESPACES):
        rel = link.get("rel", "alternate")
        href = link.get("href")
        if href:
            links[rel] = urljoin(base + "/", href)
    return links


def _text(node: etree._Element, path: str) -> str:
    element = node.find(path, NAMESPACES)
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def _int_or_none(node: etree._Element, path: str) -> int | None:
    value = _text(node, path)
    try:
        return int(value) if value else None
    except ValueError:
        return None


def _local(tag: Any) -> str:
    return tag.split("}", 1)[-1] if isinstance(tag, str) and "}" in tag else str(tag)
