"""Local data-health rules that run without any AI service.

Issues are advisory: they never block the edit that produced them. Some
issues carry a fix, a patch the caller may apply with apply_fix().
"""

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from hotel_cms.core.tree.ids import generate_id
from hotel_cms.core.tree.navigation import iter_with_depth
from hotel_cms.core.tree.operations import update_node
from hotel_cms.models.node import ContentNode
from hotel_cms.models.payload import DiningPayload, QaPayload, is_empty_content, payload_of

IssueSeverity = Literal["critical", "warning", "optimization"]

# Nesting deeper than this is hard to navigate for guests.
MAX_COMFORTABLE_DEPTH = 5

_PLACEHOLDER_NAMES = frozenset({"new item", "new node", "untitled"})


@dataclass(frozen=True)
class HealthFix:
    target_id: str
    description: str
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HealthIssue:
    id: str
    node_id: str
    node_name: str
    severity: IssueSeverity
    message: str
    fix: HealthFix | None = None


def _issue(
    node: ContentNode,
    severity: IssueSeverity,
    message: str,
    fix_description: str | None = None,
    fix_data: Mapping[str, Any] | None = None,
) -> HealthIssue:
    fix = None
    if fix_description is not None:
        fix = HealthFix(target_id=node.id, description=fix_description, data=fix_data or {})
    return HealthIssue(
        id=generate_id("local_issue"),
        node_id=node.id,
        node_name=node.name or "Unnamed Node",
        severity=severity,
        message=message,
        fix=fix,
    )


def find_empty_nodes(root: ContentNode) -> list[HealthIssue]:
    """Missing names, placeholder names, and required values left blank."""
    issues: list[HealthIssue] = []
    for node, _depth in iter_with_depth(root):
        if is_empty_content(node.name):
            issues.append(_issue(node, "critical", "Node has no name.", "Set Name", {"name": "New Item"}))
        elif node.name and node.name.strip().lower() in _PLACEHOLDER_NAMES:
            issues.append(_issue(node, "warning", "Node has default placeholder name.", "Rename"))

        if node.kind in ("item", "field") and is_empty_content(node.value):
            issues.append(
                _issue(
                    node,
                    "warning",
                    f'Field "{node.name}" is empty.',
                    "Set Placeholder",
                    {"value": "TBD"},
                )
            )

        payload = payload_of(node)
        if isinstance(payload, DiningPayload) and payload.price in (None, ""):
            issues.append(
                _issue(
                    node,
                    "warning",
                    f'Menu item "{node.name}" has no price.',
                    "Set Price",
                    {"price": "0"},
                )
            )
        if isinstance(payload, QaPayload) and is_empty_content(payload.answer):
            issues.append(
                _issue(
                    node,
                    "critical",
                    f'Question "{payload.question or "Unknown"}" has no answer.',
                    "Set Answer",
                    {"answer": "Answer pending."},
                )
            )
    return issues


def find_structural_issues(root: ContentNode) -> list[HealthIssue]:
    """Excessive nesting and value-holding kinds used as containers."""
    issues: list[HealthIssue] = []
    for node, depth in iter_with_depth(root):
        if depth > MAX_COMFORTABLE_DEPTH:
            issues.append(
                _issue(node, "optimization", f"Nesting level ({depth}) is too deep for good UX.")
            )
        if node.kind == "field" and node.children:
            issues.append(
                _issue(
                    node,
                    "warning",
                    f"Node \"{node.name}\" is a 'field' type but has children. "
                    "Should it be a 'category'?",
                    "Convert to Category",
                    {"type": "category"},
                )
            )
    return issues


def find_duplicate_siblings(root: ContentNode) -> list[HealthIssue]:
    """Siblings sharing the same (case-insensitive) name confuse users and AI alike."""
    issues: list[HealthIssue] = []
    for node, _depth in iter_with_depth(root):
        if len(node.children) < 2:
            continue
        names = Counter((c.name or "").strip().lower() for c in node.children)
        for child in node.children:
            key = (child.name or "").strip().lower()
            if key and names[key] > 1:
                issues.append(
                    _issue(
                        child,
                        "critical",
                        f'Duplicate name "{child.name}" found in same category.',
                        "Rename",
                        {"name": f"{child.name} (Copy)"},
                    )
                )
    return issues


def run_local_validation(root: ContentNode) -> list[HealthIssue]:
    """Run every local rule and combine the results."""
    return [
        *find_empty_nodes(root),
        *find_structural_issues(root),
        *find_duplicate_siblings(root),
    ]


def apply_fix(root: ContentNode, issue: HealthIssue) -> ContentNode:
    """Apply the patch attached to an issue. No-op for issues without a usable fix."""
    if issue.fix is None or not issue.fix.data:
        return root
    return update_node(root, issue.fix.target_id, issue.fix.data)
