"""Convert content trees to and from their JSON wire form."""

from collections.abc import Mapping
from typing import Any

from hotel_cms.models.node import Attribute, ContentNode, thaw

# Wire keys owned by ContentNode; everything else lands in `extra`.
_CORE_KEYS = frozenset({"id", "type", "name", "value", "description", "attributes", "children"})


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def attribute_from_dict(data: dict[str, Any]) -> Attribute:
    if not isinstance(data, Mapping):
        msg = f"attribute must be an object, got {type(data).__name__}"
        raise ValueError(msg)
    options = data.get("options")
    return Attribute(
        id=str(data.get("id", "")),
        key=str(data.get("key", "")),
        value=_text(data.get("value")) or "",
        kind=str(data.get("type", "text")),
        options=tuple(options) if options is not None else None,
    )


def attribute_to_dict(attr: Attribute) -> dict[str, Any]:
    out: dict[str, Any] = {"id": attr.id, "key": attr.key, "value": attr.value, "type": attr.kind}
    if attr.options is not None:
        out["options"] = list(attr.options)
    return out


def node_from_dict(data: dict[str, Any]) -> ContentNode:
    """Build a ContentNode tree from a wire dict.

    Ids are coerced to strings. Absent and empty ``children`` both decode to a leaf.
    """
    if not isinstance(data, Mapping):
        msg = f"node must be an object, got {type(data).__name__}"
        raise ValueError(msg)
    if "id" not in data:
        msg = f"node without id: {sorted(data.keys())!r}"
        raise ValueError(msg)

    raw_attrs = data.get("attributes")
    return ContentNode(
        id=str(data["id"]),
        kind=str(data.get("type") or "item"),
        name=_text(data.get("name")),
        value=_text(data.get("value")),
        description=_text(data.get("description")),
        attributes=(
            tuple(attribute_from_dict(a) for a in raw_attrs) if raw_attrs is not None else None
        ),
        children=tuple(node_from_dict(c) for c in data.get("children") or ()),
        extra={k: v for k, v in data.items() if k not in _CORE_KEYS},
    )


def node_to_dict(node: ContentNode, *, include_children: bool = True) -> dict[str, Any]:
    """Serialize a node (and, by default, its subtree) into plain JSON types.

    Absent optional fields are omitted; an empty children list is omitted too.
    """
    out: dict[str, Any] = {"id": node.id, "type": node.kind}
    if node.name is not None:
        out["name"] = node.name
    if node.value is not None:
        out["value"] = node.value
    if node.description is not None:
        out["description"] = node.description
    if node.attributes is not None:
        out["attributes"] = [attribute_to_dict(a) for a in node.attributes]
    for key, val in node.extra.items():
        out[key] = thaw(val)
    if include_children and node.children:
        out["children"] = [node_to_dict(c) for c in node.children]
    return out
