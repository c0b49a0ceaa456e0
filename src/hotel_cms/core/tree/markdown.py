"""Render content subtrees as indented markdown for humans and AI context windows."""

import io

from hotel_cms.core.tree.navigation import find_node
from hotel_cms.models.node import ContentNode
from hotel_cms.models.payload import DiningPayload, QaPayload, ScheduledEventPayload, payload_of


def _inline_attributes(node: ContentNode, include_notes: bool) -> list[str]:
    parts: list[str] = []
    payload = payload_of(node)
    if isinstance(payload, DiningPayload) and payload.price not in (None, ""):
        parts.append(f"${payload.price}")
    if isinstance(payload, ScheduledEventPayload):
        if payload.start_time and payload.end_time:
            parts.append(f"{payload.start_time}-{payload.end_time}")
        if payload.event_status:
            parts.append(payload.event_status)
    tags = node.extra.get("tags")
    if tags:
        parts.append("Tags: " + ",".join(str(t) for t in tags))
    for attr in node.attributes or ():
        if attr.value:
            parts.append(f"{attr.key}: {attr.value}")
    if include_notes and node.description:
        parts.append(f"Note: {node.description}")
    return parts


def render_subtree_as_markdown(
    root: ContentNode,
    *,
    node_id: str | None = None,
    max_depth: int | None = None,
    include_notes: bool = True,
) -> str:
    """Render a node and its descendants as indented markdown.

    Args:
        root: Tree to render from.
        node_id: Node to start at (None = the root).
        max_depth: Max levels below the start node to include (None = unlimited).
        include_notes: Whether to include node descriptions.

    Returns:
        Markdown with headers for the top levels and bullets below; empty
        string if node_id is not found.
    """
    start = root if node_id is None else find_node(root, node_id)
    if start is None:
        return ""

    out = io.StringIO()
    todo: list[tuple[ContentNode, int]] = [(start, 0)]
    while todo:
        node, depth = todo.pop()
        indent = "  " * depth

        marker = "-"
        if depth == 0:
            marker = "#"
        elif depth == 1 and node.kind == "category":
            marker = "##"
        elif depth == 2 and node.kind == "category":
            marker = "###"

        line = f"{indent}{marker} {node.name or 'Untitled'}"
        if node.value:
            line += f": {node.value}"
        payload = payload_of(node)
        if isinstance(payload, QaPayload):
            if payload.question:
                line += f" (Q: {payload.question})"
            if payload.answer:
                line += f" (A: {payload.answer})"
        attrs = _inline_attributes(node, include_notes)
        if attrs:
            line += f" [{' | '.join(attrs)}]"
        out.write(line + "\n")

        if max_depth is not None and depth >= max_depth:
            if node.children:
                noun = "child" if len(node.children) == 1 else "children"
                out.write(f"{indent}  - ... ({len(node.children)} more {noun}, id={node.id})\n")
            continue
        todo.extend((c, depth + 1) for c in reversed(node.children))

    return out.getvalue()
