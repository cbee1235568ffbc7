"""Path extraction over parsed documents, with memoised leaf lookups."""

import threading
from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import dataclass

from sms_notifications.document.tree import (
    ABSENT,
    AttributedNode,
    ExtractionPath,
    ParsedDocument,
)


# ---------------------------------------------------------------------------
# Disambiguation rules
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TextContent:
    """Use the node's inline text."""


@dataclass(frozen=True)
class PreferAttribute:
    """Use the named attribute when the node carries it, else its inline text."""

    attr_name: str


Disambiguation = TextContent | PreferAttribute


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------
class ResolutionCache:
    """Bounded LRU of ``(doc_id, path) -> leaf value``.

    Only scalars and ``ABSENT`` are stored, so a cached entry never pins a
    document subtree in memory.
    """

    def __init__(self, max_entries: int = 4096):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple[int, ExtractionPath], object] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: tuple[int, ExtractionPath]):
        with self._lock:
            try:
                value = self._entries[key]
            except KeyError:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def put(self, key: tuple[int, ExtractionPath], value) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _is_leaf(value) -> bool:
    return value is ABSENT or isinstance(value, str)


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------
class PathExtractor:
    """Resolves extraction paths against parsed documents.

    Resolution never raises: a key applied to a non-mapping, an index applied
    to a non-sequence, a missing key or an out-of-range index all yield
    ``ABSENT``. Attributed nodes are transparent while walking.
    """

    def __init__(self, cache: ResolutionCache | None = None):
        self.cache = cache if cache is not None else ResolutionCache()

    def resolve(self, doc: ParsedDocument, path: ExtractionPath):
        key = (doc.doc_id, path)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        value = self._walk(doc.root, path)
        if _is_leaf(value):
            self.cache.put(key, value)
        return value

    @staticmethod
    def _walk(node, path: ExtractionPath):
        for segment in path.segments:
            if isinstance(node, AttributedNode):
                node = node.core
            if isinstance(segment, str):
                if not isinstance(node, Mapping) or segment not in node:
                    return ABSENT
                node = node[segment]
            else:
                if not isinstance(node, tuple) or segment >= len(node):
                    return ABSENT
                node = node[segment]
        return node

    def extract_text(
        self,
        doc: ParsedDocument,
        path: ExtractionPath,
        disambiguation: Disambiguation = TextContent(),
        absent_on_empty: bool = True,
    ):
        """Resolve ``path`` and reduce the result to a string or ``ABSENT``."""
        value = self.resolve(doc, path)

        # Single-element lists wrap leaves in both XML and some JSON payloads.
        if isinstance(value, tuple) and len(value) == 1:
            value = value[0]

        if value is ABSENT:
            return ABSENT

        if isinstance(value, AttributedNode):
            if isinstance(disambiguation, PreferAttribute) and value.attrs.get(disambiguation.attr_name):
                return value.attrs[disambiguation.attr_name]
            text = value.inline_text
        elif isinstance(value, str):
            text = value
        else:
            text = None

        if text is None:
            return ABSENT
        if absent_on_empty and text == "":
            return ABSENT
        return text
