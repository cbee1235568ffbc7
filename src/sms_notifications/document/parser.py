"""Document parser — raw inbound text to an immutable ``ParsedDocument``.

XML is parsed the way the ATG integration expects it to be navigated:

- element names keep their namespace prefix (``SOAP-ENV:Envelope``,
  ``oa:Code``); elements in the default namespace use their local name
- every child element is collected into a tuple under its tag, so paths
  address the n-th occurrence with an index
- text is trimmed and internal whitespace collapsed
- an element with attributes becomes an ``AttributedNode``

JSON messages must be a top-level object; scalars are stringified.
"""

import json
import xml.etree.ElementTree as ET
from types import MappingProxyType

import structlog

from sms_notifications.document.tree import (
    AttributedNode,
    DocumentFormat,
    ParsedDocument,
    TreeValue,
    freeze,
)

logger = structlog.get_logger(__name__)


class ParseError(Exception):
    """The raw document is not well-formed for its declared format."""

    def __init__(self, message: str, fmt: DocumentFormat):
        super().__init__(message)
        self.fmt = fmt


def detect_format(raw: str) -> DocumentFormat:
    """Guess the format from the first non-blank character."""
    return DocumentFormat.SOAP_XML if raw.lstrip().startswith("<") else DocumentFormat.JSON


def parse_document(raw: str, fmt: DocumentFormat | None = None) -> ParsedDocument:
    """Parse ``raw`` into a document tree, raising ``ParseError`` on bad input."""
    if not isinstance(raw, str) or not raw.strip():
        raise ParseError("Invalid input: document must be a non-empty string", fmt or DocumentFormat.JSON)

    fmt = fmt or detect_format(raw)
    if fmt is DocumentFormat.SOAP_XML:
        root = _parse_xml(raw)
    else:
        root = _parse_json(raw)

    document = ParsedDocument(root=root, fmt=fmt)
    logger.debug("Document parsed", doc_id=document.doc_id, format=fmt.value)
    return document


# ---------------------------------------------------------------------------
# XML
# ---------------------------------------------------------------------------
def _parse_xml(raw: str) -> MappingProxyType:
    parser = ET.XMLPullParser(events=("start-ns", "start"))
    try:
        parser.feed(raw.strip())
        parser.close()
    except ET.ParseError as exc:
        raise ParseError(f"Malformed XML: {exc}", DocumentFormat.SOAP_XML) from exc

    prefixes: dict[str, str] = {}
    root = None
    for event, payload in parser.read_events():
        if event == "start-ns":
            prefix, uri = payload
            prefixes.setdefault(uri, prefix)
        elif event == "start" and root is None:
            root = payload

    if root is None:
        raise ParseError("XML document has no root element", DocumentFormat.SOAP_XML)

    names = _QualifiedNames(prefixes)
    try:
        converted = _convert_element(root, names)
    except RecursionError as exc:
        raise ParseError("XML document is nested too deeply", DocumentFormat.SOAP_XML) from exc
    return MappingProxyType({names(root.tag): converted})


class _QualifiedNames:
    """Turns ElementTree's ``{uri}local`` names back into ``prefix:local``."""

    def __init__(self, prefixes: dict[str, str]):
        self._prefixes = prefixes
        self._seen: dict[str, str] = {}

    def __call__(self, name: str) -> str:
        qualified = self._seen.get(name)
        if qualified is None:
            qualified = self._qualify(name)
            self._seen[name] = qualified
        return qualified

    def _qualify(self, name: str) -> str:
        if not name.startswith("{"):
            return name
        uri, _, local = name[1:].partition("}")
        prefix = self._prefixes.get(uri)
        return f"{prefix}:{local}" if prefix else local


def _normalize_text(text: str | None) -> str:
    return " ".join(text.split()) if text else ""


def _convert_element(element: ET.Element, names: _QualifiedNames) -> TreeValue:
    children = list(element)
    if children:
        grouped: dict[str, list[TreeValue]] = {}
        for child in children:
            grouped.setdefault(names(child.tag), []).append(_convert_element(child, names))
        core: TreeValue = MappingProxyType({tag: tuple(nodes) for tag, nodes in grouped.items()})
    else:
        core = _normalize_text(element.text)

    if element.attrib:
        attrs = MappingProxyType({names(key): value for key, value in element.attrib.items()})
        return AttributedNode(core=core, attrs=attrs)
    return core


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------
def _parse_json(raw: str) -> MappingProxyType:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed JSON: {exc}", DocumentFormat.JSON) from exc
    except RecursionError as exc:
        raise ParseError("JSON message is nested too deeply", DocumentFormat.JSON) from exc

    if not isinstance(payload, dict):
        raise ParseError(
            f"JSON message must be an object, got {type(payload).__name__}",
            DocumentFormat.JSON,
        )
    try:
        return freeze(payload)
    except RecursionError as exc:
        raise ParseError("JSON message is nested too deeply", DocumentFormat.JSON) from exc
