"""Compact JSON rendering of a tree for AI prompts."""

from typing import Any

from hotel_cms.models.node import ContentNode
from hotel_cms.models.serialization import node_to_dict

# Bookkeeping fields that only add noise to a prompt.
_NOISE_FIELDS = frozenset({"id", "lastSaved", "lastModified", "uiState", "isExpanded", "children"})


def clean_ai_json(node: ContentNode) -> dict[str, Any]:
    """Keep only semantic content: no ids or timestamps, no empty values.

    Children are nested under ``contains``.
    """
    raw = node_to_dict(node, include_children=False)
    out: dict[str, Any] = {}
    for key, val in raw.items():
        if key in _NOISE_FIELDS:
            continue
        if val is None or val == "" or (isinstance(val, list) and not val):
            continue
        out[key] = val
    if node.children:
        out["contains"] = [clean_ai_json(c) for c in node.children]
    return out
