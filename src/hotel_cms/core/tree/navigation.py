"""Tree navigation: lookup, ancestor paths, traversal."""

from collections.abc import Iterator

from hotel_cms.models.node import ContentNode


def find_node(root: ContentNode, node_id: str) -> ContentNode | None:
    """Find a node by id anywhere in the tree."""
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def find_path(root: ContentNode, node_id: str) -> tuple[ContentNode, ...] | None:
    """Return the chain of nodes from root to the given node (inclusive), or None."""
    todo: list[tuple[ContentNode, tuple[ContentNode, ...]]] = [(root, ())]
    while todo:
        node, parents = todo.pop()
        path = (*parents, node)
        if node.id == node_id:
            return path
        todo.extend((child, path) for child in reversed(node.children))
    return None


def find_parent(root: ContentNode, node_id: str) -> ContentNode | None:
    """Return the parent of a node. None for the root itself or unknown ids."""
    path = find_path(root, node_id)
    if path is None or len(path) < 2:
        return None
    return path[-2]


def iter_nodes(root: ContentNode) -> Iterator[ContentNode]:
    """Walk all nodes in pre-order (same order as shown in the tree view)."""
    todo = [root]
    while todo:
        node = todo.pop()
        yield node
        todo.extend(reversed(node.children))


def iter_with_depth(root: ContentNode, *, start: int = 0) -> Iterator[tuple[ContentNode, int]]:
    """Pre-order walk yielding (node, depth) with the root at depth `start`."""
    todo = [(root, start)]
    while todo:
        node, depth = todo.pop()
        yield node, depth
        todo.extend((c, depth + 1) for c in reversed(node.children))


def contains_id(root: ContentNode, node_id: str) -> bool:
    return find_node(root, node_id) is not None


def breadcrumbs(root: ContentNode, node_id: str) -> tuple[str, ...]:
    """Names of the ancestors of a node, root first, excluding the node itself."""
    path = find_path(root, node_id)
    if not path:
        return ()
    return tuple(n.name or "Untitled" for n in path[:-1])
