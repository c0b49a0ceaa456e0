"""Flat CSV export of a content tree, one row per node."""

import csv
import io
from collections.abc import Callable

from hotel_cms.models.node import ContentNode
from hotel_cms.models.payload import DiningPayload, QaPayload, ScheduledEventPayload, payload_of

CSV_HEADERS = (
    "System_ID",
    "Semantic_Path",
    "Node_Type",
    "Name",
    "Primary_Content",
    "Rich_Attributes",
    "Tags",
    "AI_Description",
)

# Rows written between two progress callbacks.
_CHUNK_SIZE = 50


def _flatten(root: ContentNode) -> list[tuple[ContentNode, tuple[str, ...]]]:
    result: list[tuple[ContentNode, tuple[str, ...]]] = []
    todo: list[tuple[ContentNode, tuple[str, ...]]] = [(root, ())]
    while todo:
        node, parents = todo.pop()
        path = (*parents, node.name or "Untitled")
        result.append((node, path))
        todo.extend((c, path) for c in reversed(node.children))
    return result


def rich_attributes(node: ContentNode) -> str:
    """Summarize typed payload fields and attributes as ``A | B | C``."""
    parts: list[str] = []
    payload = payload_of(node)
    if isinstance(payload, DiningPayload):
        if payload.price not in (None, ""):
            parts.append(f"Price: ${payload.price}")
        if payload.calories:
            parts.append(f"Calories: {payload.calories}kcal")
        if payload.is_paid:
            parts.append("Requires Payment")
    elif isinstance(payload, ScheduledEventPayload):
        if payload.start_time and payload.end_time:
            parts.append(f"Time: {payload.start_time}-{payload.end_time}")
        if payload.recurrence_type:
            parts.append(f"Recurrence: {payload.recurrence_type}")
        if payload.days:
            parts.append(f"Days: {'/'.join(payload.days)}")
        if payload.target_audience:
            parts.append(f"Audience: {payload.target_audience}")
        if payload.event_status:
            parts.append(f"Status: {payload.event_status}")
    if node.extra.get("isMandatory"):
        parts.append("Mandatory")
    for attr in node.attributes or ():
        if attr.value:
            parts.append(f"{attr.key}: {attr.value}")
    return " | ".join(parts)


def _primary(node: ContentNode) -> str:
    if node.value:
        return node.value
    payload = payload_of(node)
    if isinstance(payload, QaPayload):
        return payload.answer or payload.question or ""
    return ""


def export_csv(root: ContentNode, on_progress: Callable[[int], None] | None = None) -> str:
    """Render the tree as CSV (UTF-8 BOM, comma separated, minimal quoting).

    Args:
        root: Tree to export.
        on_progress: Called with a 0-100 percentage after each chunk of rows.
    """
    rows = _flatten(root)
    out = io.StringIO()
    out.write("\ufeff")
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for start in range(0, len(rows), _CHUNK_SIZE):
        chunk = rows[start : start + _CHUNK_SIZE]
        for node, path in chunk:
            tags = node.extra.get("tags") or ()
            writer.writerow(
                (
                    node.id,
                    " > ".join(path),
                    node.kind,
                    node.name or "",
                    _primary(node),
                    rich_attributes(node),
                    ", ".join(str(t) for t in tags),
                    node.description or "",
                )
            )
        if on_progress is not None:
            on_progress(round((start + len(chunk)) / len(rows) * 100))

    return out.getvalue()
