"""Apply structural actions proposed by an AI assistant to a content tree."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from loguru import logger

from hotel_cms.core.tree.ids import generate_id
from hotel_cms.core.tree.navigation import contains_id, iter_nodes
from hotel_cms.core.tree.operations import delete_node, insert_child, move_node, update_node
from hotel_cms.core.tree.transform import regenerate_ids
from hotel_cms.models.node import ContentNode
from hotel_cms.models.serialization import node_from_dict

ActionType = Literal["add", "update", "delete", "move"]


@dataclass(frozen=True)
class ArchitectAction:
    """One structural edit.

    ``target_id`` is the parent for ``add``, the node itself for ``update``,
    ``delete`` and ``move``. ``destination_id`` is the new parent for ``move``.
    """

    type: ActionType
    target_id: str
    data: Mapping[str, Any] = field(default_factory=dict)
    destination_id: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class ArchitectResponse:
    summary: str
    actions: tuple[ArchitectAction, ...] = ()


@dataclass(frozen=True)
class ApplyReport:
    """Result of apply_actions(): the final tree plus per-action outcome."""

    tree: ContentNode
    applied: tuple[ArchitectAction, ...]
    failed: tuple[tuple[ArchitectAction, str], ...]


def action_from_dict(data: Mapping[str, Any]) -> ArchitectAction:
    """Parse the JSON shape returned by the AI service (camelCase keys)."""
    return ArchitectAction(
        type=data["type"],
        target_id=str(data.get("targetId", "")),
        data=data.get("data") or data.get("payload") or {},
        destination_id=data.get("destinationId"),
        reason=data.get("reason") or data.get("reasoning"),
    )


def _node_for_add(tree: ContentNode, data: Mapping[str, Any]) -> ContentNode:
    raw = dict(data)
    raw.setdefault("id", generate_id("ai"))
    raw.setdefault("type", "item")
    node = node_from_dict(raw)
    existing = {n.id for n in iter_nodes(tree)}
    if any(n.id in existing for n in iter_nodes(node)):
        node = regenerate_ids(node)
    return node


def _apply_one(tree: ContentNode, action: ArchitectAction) -> ContentNode:
    """Apply a single action. Raises ValueError when the action cannot be applied."""
    if action.type in ("add", "update") and not isinstance(action.data, Mapping):
        msg = f"{action.type} action data must be an object, got {type(action.data).__name__}"
        raise ValueError(msg)

    if action.type == "add":
        if not action.data:
            msg = "add action without data"
            raise ValueError(msg)
        new_tree = insert_child(tree, action.target_id, _node_for_add(tree, action.data))
        if new_tree is tree:
            msg = f"parent '{action.target_id}' not found"
            raise ValueError(msg)
        return new_tree

    if action.type == "update":
        if not action.data:
            msg = "update action without data"
            raise ValueError(msg)
        new_tree = update_node(tree, action.target_id, action.data)
        if new_tree is tree:
            msg = f"node '{action.target_id}' not found or patch rejected"
            raise ValueError(msg)
        return new_tree

    if action.type == "delete":
        new_tree = delete_node(tree, action.target_id)
        if new_tree is tree:
            msg = f"node '{action.target_id}' not found or not deletable"
            raise ValueError(msg)
        return new_tree

    if action.type == "move":
        if not action.destination_id or not contains_id(tree, action.destination_id):
            msg = f"destination '{action.destination_id}' not found"
            raise ValueError(msg)
        new_tree = move_node(tree, action.target_id, action.destination_id, "inside")
        if new_tree is tree:
            msg = f"cannot move '{action.target_id}' into '{action.destination_id}'"
            raise ValueError(msg)
        return new_tree

    msg = f"unknown action type: {action.type!r}"
    raise ValueError(msg)


def apply_actions(tree: ContentNode, actions: Iterable[ArchitectAction]) -> ApplyReport:
    """Apply actions one at a time, in order.

    A failing action is recorded and skipped; it never aborts the batch.
    """
    applied: list[ArchitectAction] = []
    failed: list[tuple[ArchitectAction, str]] = []
    for action in actions:
        try:
            tree = _apply_one(tree, action)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Skipping {} action on {}: {}", action.type, action.target_id, e)
            failed.append((action, str(e)))
            continue
        applied.append(action)

    logger.info("Applied {} action(s), {} failed", len(applied), len(failed))
    return ApplyReport(tree=tree, applied=tuple(applied), failed=tuple(failed))
