"""Cheap health statistics over a content tree."""

from hotel_cms.core.tree.navigation import iter_with_depth
from hotel_cms.core.tree.operations import CONTAINER_KINDS
from hotel_cms.models.node import ContentNode, TreeStats
from hotel_cms.models.payload import is_empty_content, primary_content


def compute_stats(root: ContentNode) -> TreeStats:
    """Count nodes, maximum depth (root = 1) and nodes with empty primary content.

    Container kinds (root, category, menu, list) are never counted as empty;
    for everything else the primary content is the answer of a Q&A pair, the
    price of a menu item, or the value otherwise.
    """
    total = 0
    depth = 0
    categories = 0
    fillable = 0
    empty = 0

    for node, level in iter_with_depth(root, start=1):
        total += 1
        depth = max(depth, level)
        if node.kind in CONTAINER_KINDS:
            categories += 1
            continue
        fillable += 1
        if is_empty_content(primary_content(node)):
            empty += 1

    completion = round((fillable - empty) / fillable * 100) if fillable else 100
    return TreeStats(
        total_nodes=total,
        depth=depth,
        empty_field_count=empty,
        categories=categories,
        fillable_items=fillable,
        completion_rate=completion,
    )
