"""Parsed-document tree — the read-only shape every inbound document takes.

A ``TreeValue`` is one of:

- ``str`` — a scalar (element text, JSON string/number/bool)
- ``tuple`` — an ordered list of ``TreeValue``
- ``Mapping[str, TreeValue]`` — a keyed node (``MappingProxyType`` once frozen)
- ``AttributedNode`` — any of the above carrying an attribute map

Trees are built once per parse and never mutated afterwards. The root of a
document is always a mapping.
"""

import itertools
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Union


class _Absent:
    """Marker for "no value at this path" — distinct from ``""`` and ``None``."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Absent, ())


ABSENT = _Absent()


@dataclass(frozen=True)
class AttributedNode:
    """A node that carries XML attributes next to its content."""

    core: "TreeValue"
    attrs: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def inline_text(self) -> str | None:
        """The node's own text, when its core is a scalar."""
        return self.core if isinstance(self.core, str) else None


TreeValue = Union[str, tuple, Mapping, AttributedNode]


class DocumentFormat(Enum):
    SOAP_XML = "soap_xml"
    JSON = "json"


_doc_ids = itertools.count(1)


@dataclass(frozen=True)
class ParsedDocument:
    """A parsed inbound document.

    ``doc_id`` identifies this parse for the lifetime of the process and is
    the document half of every cache key. Two parses of the same text get
    different ids.
    """

    root: Mapping
    fmt: DocumentFormat
    doc_id: int = field(default_factory=lambda: next(_doc_ids))

    def __post_init__(self):
        if not isinstance(self.root, Mapping):
            raise TypeError(f"Document root must be a mapping, got {type(self.root).__name__}")


@dataclass(frozen=True)
class ExtractionPath:
    """An ordered, non-empty sequence of map keys and list indices."""

    segments: tuple[str | int, ...]

    def __post_init__(self):
        if not self.segments:
            raise ValueError("Extraction path must not be empty")
        for segment in self.segments:
            if isinstance(segment, bool) or not isinstance(segment, (str, int)):
                raise TypeError(f"Invalid path segment: {segment!r}")
            if isinstance(segment, int) and segment < 0:
                raise ValueError(f"List index must be non-negative, got {segment}")

    @classmethod
    def of(cls, *segments: str | int) -> "ExtractionPath":
        return cls(tuple(segments))

    def __add__(self, other: "ExtractionPath") -> "ExtractionPath":
        return ExtractionPath(self.segments + other.segments)

    def __str__(self) -> str:
        return "/".join(str(segment) for segment in self.segments)


def freeze(value: Any) -> TreeValue:
    """Convert plain Python data (e.g. decoded JSON) into an immutable tree.

    Strings stay as they are, numbers and booleans become their JSON text,
    ``None`` becomes ``""`` (which extraction treats as absent).
    """
    if isinstance(value, AttributedNode):
        return value
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        return MappingProxyType({str(key): freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    raise TypeError(f"Cannot build a tree value from {type(value).__name__}")
