"""Whole-subtree transforms: id regeneration, value stripping, search filtering."""

from dataclasses import replace

from hotel_cms.core.tree.ids import generate_id
from hotel_cms.models.node import ContentNode

# Extension fields that carry hotel-specific values rather than structure.
VALUE_EXTRA_FIELDS = ("price", "startTime", "endTime", "answer", "calories")


def regenerate_ids(node: ContentNode) -> ContentNode:
    """Give every node in the subtree a fresh id, keeping shape and content.

    Needed before merging a template or clone into another tree.
    """
    return replace(
        node,
        id=generate_id(node.kind[:3]),
        children=tuple(regenerate_ids(c) for c in node.children),
    )


def strip_values(node: ContentNode) -> ContentNode:
    """Clear hotel-specific values, keeping kinds, names and structure.

    Used for "structure only" template export.
    """
    attributes = node.attributes
    if attributes is not None:
        attributes = tuple(replace(a, value="") for a in attributes)
    extra = {k: v for k, v in node.extra.items() if k not in VALUE_EXTRA_FIELDS}
    return replace(
        node,
        value=None,
        description=None,
        attributes=attributes,
        extra=extra,
        children=tuple(strip_values(c) for c in node.children),
    )


def node_matches(node: ContentNode, query: str) -> bool:
    """Case-insensitive substring test over name, value, attributes and tags."""
    needle = query.lower()
    if node.name and needle in node.name.lower():
        return True
    if node.value and needle in node.value.lower():
        return True
    for attr in node.attributes or ():
        if needle in attr.key.lower() or needle in attr.value.lower():
            return True
    tags = node.extra.get("tags")
    if isinstance(tags, tuple):
        return any(isinstance(t, str) and needle in t.lower() for t in tags)
    return False


def filter_tree(root: ContentNode, query: str) -> ContentNode | None:
    """Prune the tree down to matching nodes plus their ancestors.

    Matching is a case-insensitive substring test over name, value, attribute
    keys/values and tags. Returns None when nothing matches; an empty query
    returns the tree unchanged.
    """
    if not query.strip():
        return root
    return _filter(root, query.strip().lower())


def _filter(node: ContentNode, needle: str) -> ContentNode | None:
    kept = tuple(c for c in (_filter(child, needle) for child in node.children) if c is not None)
    if kept or node_matches(node, needle):
        return replace(node, children=kept)
    return None


def tree_from_template(data: ContentNode, name: str, *, keep_values: bool = True) -> ContentNode:
    """Clone a template tree for a new hotel: fresh ids, new root name, optionally no values."""
    tree = regenerate_ids(data)
    if not keep_values:
        tree = strip_values(tree)
    return replace(tree, name=name)
