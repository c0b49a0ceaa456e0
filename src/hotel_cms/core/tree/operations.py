"""Structural edits on a content tree.

Every function takes the current root and returns a new root; the input is
never modified. Untouched subtrees are shared between the old and the new
tree, and only the nodes along the edited path are rebuilt.

Misuse (unknown ids, deleting the root, moving a node into itself) is not an
error: the original root object is returned, so callers detect a no-op with
``new is old``.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Literal

from loguru import logger

from hotel_cms.core.tree.ids import generate_id, now_ms
from hotel_cms.core.tree.navigation import contains_id, find_node, find_parent
from hotel_cms.models.node import Attribute, ContentNode
from hotel_cms.models.serialization import attribute_from_dict

MovePosition = Literal["before", "after", "inside"]

# Kinds that group other nodes rather than hold a value themselves.
CONTAINER_KINDS = frozenset({"root", "category", "menu", "list"})

_DEFAULT_CHILD_KIND: dict[str, str] = {
    "root": "category",
    "category": "item",
    "menu": "menu_item",
    "list": "item",
}


@dataclass(frozen=True)
class IdChangeResult:
    """Outcome of change_node_id()."""

    tree: ContentNode
    success: bool
    message: str


def _map_node(
    node: ContentNode, node_id: str, fn: Callable[[ContentNode], ContentNode]
) -> ContentNode:
    """Apply fn to the node with the given id, rebuilding only its ancestors."""
    if node.id == node_id:
        return fn(node)
    for i, child in enumerate(node.children):
        new_child = _map_node(child, node_id, fn)
        if new_child is not child:
            return replace(node, children=(*node.children[:i], new_child, *node.children[i + 1 :]))
    return node


def _remove_node(node: ContentNode, node_id: str) -> ContentNode:
    for i, child in enumerate(node.children):
        if child.id == node_id:
            return replace(node, children=(*node.children[:i], *node.children[i + 1 :]))
        new_child = _remove_node(child, node_id)
        if new_child is not child:
            return replace(node, children=(*node.children[:i], new_child, *node.children[i + 1 :]))
    return node


def insert_child(root: ContentNode, parent_id: str, node: ContentNode) -> ContentNode:
    """Append node as the last child of parent_id. No-op if the parent does not exist.

    The caller is responsible for id freshness.
    """
    return _map_node(root, parent_id, lambda p: replace(p, children=(*p.children, node)))


def _apply_patch(node: ContentNode, patch: Mapping[str, Any]) -> ContentNode:
    changes: dict[str, Any] = {}
    extra = dict(node.extra)
    extra_changed = False

    for key, val in patch.items():
        if key == "children":
            continue
        if key in ("kind", "type"):
            if val is not None:
                changes["kind"] = str(val)
        elif key in ("name", "value", "description"):
            changes[key] = None if val is None else str(val)
        elif key == "attributes":
            changes["attributes"] = (
                None
                if val is None
                else tuple(a if isinstance(a, Attribute) else attribute_from_dict(a) for a in val)
            )
        elif val is None:
            if key in extra:
                del extra[key]
                extra_changed = True
        else:
            extra[key] = val
            extra_changed = True

    if extra_changed:
        changes["extra"] = extra
    if not changes:
        return node
    return replace(node, **changes)


def update_node(root: ContentNode, node_id: str, patch: Mapping[str, Any]) -> ContentNode:
    """Shallow-merge patch fields into a node.

    ``children`` in the patch is ignored and a ``None`` value removes the field.
    Patches that try to change ``id`` are rejected; use change_node_id().
    """
    if "id" in patch:
        logger.debug("Rejected patch for {}: id is not patchable", node_id)
        return root
    return _map_node(root, node_id, lambda n: _apply_patch(n, patch))


def delete_node(root: ContentNode, node_id: str) -> ContentNode:
    """Remove a node and its whole subtree. The root cannot be deleted."""
    if node_id == root.id:
        logger.debug("Refusing to delete the root node {}", node_id)
        return root
    return _remove_node(root, node_id)


def move_node(
    root: ContentNode, source_id: str, target_id: str, position: MovePosition
) -> ContentNode:
    """Move the source subtree before/after target, or inside it as the last child.

    Refused (root returned unchanged) when the source is the root, when the
    target is the source or one of its descendants, when either id is
    unknown, or when before/after would make a second root.
    """
    if position not in ("before", "after", "inside"):
        return root
    if source_id == target_id or source_id == root.id:
        return root

    source = find_node(root, source_id)
    if source is None or not contains_id(root, target_id):
        return root
    if contains_id(source, target_id):
        logger.debug("Refusing to move {} into its own subtree ({})", source_id, target_id)
        return root
    if position != "inside" and target_id == root.id:
        return root

    detached = _remove_node(root, source_id)
    if position == "inside":
        return insert_child(detached, target_id, source)

    parent = find_parent(detached, target_id)
    if parent is None:
        return root

    def place(p: ContentNode) -> ContentNode:
        idx = next(i for i, c in enumerate(p.children) if c.id == target_id)
        if position == "after":
            idx += 1
        return replace(p, children=(*p.children[:idx], source, *p.children[idx:]))

    return _map_node(detached, parent.id, place)


def change_node_id(root: ContentNode, old_id: str, new_id: str) -> IdChangeResult:
    """Rename a node id, keeping ids unique. The root id is immutable."""
    new_id = new_id.strip()
    if not new_id:
        return IdChangeResult(root, False, "ID cannot be empty.")
    if old_id == new_id:
        return IdChangeResult(root, True, "ID is unchanged.")
    if old_id == root.id:
        return IdChangeResult(root, False, "The root ID cannot be changed.")
    if not contains_id(root, old_id):
        return IdChangeResult(root, False, f"Node '{old_id}' not found.")
    if contains_id(root, new_id):
        return IdChangeResult(root, False, "This ID already exists in the tree.")

    tree = _map_node(root, old_id, lambda n: replace(n, id=new_id))
    return IdChangeResult(tree, True, "ID updated successfully.")


def default_child_kind(parent_kind: str) -> str:
    """Pick the kind a freshly added child most likely needs under this parent."""
    return _DEFAULT_CHILD_KIND.get(parent_kind, "item")


def new_node(kind: str, *, name: str | None = None) -> ContentNode:
    """A blank node with a fresh id, ready for insert_child()."""
    if name is None:
        name = "New Item" if kind == "menu_item" else "New Node"
    return ContentNode(
        id=generate_id(kind[:4]),
        kind=kind,
        name=name,
        value="",
        extra={"lastModified": now_ms()},
    )


def initial_tree(name: str = "New Hotel", *, root_id: str = "root") -> ContentNode:
    """The starter tree of a fresh hotel."""
    return ContentNode(
        id=root_id,
        kind="root",
        name=name,
        children=(
            ContentNode(
                id="gen-info",
                kind="category",
                name="General Information",
                children=(ContentNode(id="g1", kind="field", name="Hotel Name", value=name),),
            ),
        ),
    )
