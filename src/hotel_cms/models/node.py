"""Domain models for the hotel content tree."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


def freeze(value: Any) -> Any:
    """Return a deeply read-only copy of a JSON-like value.

    Dicts become read-only mappings and lists become tuples, so a node can be
    shared between tree snapshots without any snapshot being able to alter it.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze(): plain dicts and lists, ready for JSON encoding."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class Attribute:
    """An ad-hoc key/value fact attached to a node (e.g. "Price" -> "100$")."""

    id: str
    key: str
    value: str = ""
    kind: str = "text"
    options: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ContentNode:
    """A single node of a hotel content tree.

    `children` is ordered and is the only ordering signal. `extra` holds every
    feature-specific field the tree operations do not interpret (scheduling
    data, prices, tags, timestamps); it is kept verbatim.
    """

    id: str
    kind: str = "item"
    name: str | None = None
    value: str | None = None
    description: str | None = None
    attributes: tuple[Attribute, ...] | None = None
    children: tuple["ContentNode", ...] = ()
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        # Accept lists and plain dicts from callers, store immutable forms.
        object.__setattr__(self, "children", tuple(self.children))
        if self.attributes is not None:
            object.__setattr__(self, "attributes", tuple(self.attributes))
        object.__setattr__(self, "extra", freeze(self.extra))

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class HotelSummary:
    """Index entry for listing documents without loading their bodies."""

    id: str
    name: str


@dataclass(frozen=True)
class HotelTemplate:
    """A reusable structural snapshot of a hotel tree."""

    id: str
    name: str
    description: str
    created_at: int
    data: ContentNode


@dataclass(frozen=True)
class TreeStats:
    """Aggregate counters computed in a single traversal."""

    total_nodes: int
    depth: int
    empty_field_count: int
    categories: int = 0
    fillable_items: int = 0
    completion_rate: int = 100
