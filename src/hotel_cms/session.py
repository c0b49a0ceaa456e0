"""Editing session: owns the open tree, routes edits through the tree operations,
notifies subscribers and drives autosave."""

import asyncio
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from loguru import logger

from hotel_cms.core.actions import ApplyReport, ArchitectAction, apply_actions
from hotel_cms.core.autosave import AutosaveScheduler, SaveStatus, StatusListener
from hotel_cms.core.sync.shard_sync import ShardSync
from hotel_cms.core.tree import operations
from hotel_cms.core.tree.ids import now_ms
from hotel_cms.core.tree.navigation import find_node
from hotel_cms.core.tree.operations import IdChangeResult, MovePosition
from hotel_cms.core.tree.transform import tree_from_template
from hotel_cms.core.validation import HealthIssue, apply_fix
from hotel_cms.models.node import ContentNode, HotelTemplate
from hotel_cms.protocols import ArchitectProtocol, ClockProtocol

TreeListener = Callable[[ContentNode], None]


class SaveFailedError(RuntimeError):
    """A manual save did not reach the remote store."""


class NoDocumentError(RuntimeError):
    """The operation needs an open document."""


class EditorSession:
    """The single owner of the tree being edited.

    Every edit goes through a method here. An edit that changes nothing (unknown
    id, refused move, ...) returns False and neither notifies nor marks dirty.
    """

    def __init__(
        self,
        gateway: ShardSync,
        *,
        clock: ClockProtocol | None = None,
        autosave_delay: float | None = None,
        settle_delay: float | None = None,
    ) -> None:
        self.gateway = gateway
        self._tree: ContentNode | None = None
        self._doc_id: str | None = None
        self._listeners: list[TreeListener] = []

        timing: dict[str, float] = {}
        if autosave_delay is not None:
            timing["delay"] = autosave_delay
        if settle_delay is not None:
            timing["settle_delay"] = settle_delay
        self.autosave = AutosaveScheduler(self._save, clock=clock, **timing)

    @property
    def tree(self) -> ContentNode:
        if self._tree is None:
            msg = "No document is open"
            raise NoDocumentError(msg)
        return self._tree

    @property
    def doc_id(self) -> str | None:
        return self._doc_id

    @property
    def status(self) -> SaveStatus:
        return self.autosave.status

    def subscribe(self, listener: TreeListener) -> Callable[[], None]:
        """Call listener with the new tree after every effective change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def subscribe_status(self, listener: StatusListener) -> Callable[[], None]:
        return self.autosave.subscribe(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.tree)

    def _commit(self, new_tree: ContentNode) -> bool:
        if new_tree is self._tree:
            return False
        self._tree = new_tree
        self._notify()
        self.autosave.mark_dirty()
        return True

    def _save(self) -> bool:
        # Runs on a worker thread; tree snapshots are immutable.
        doc_id, tree = self._doc_id, self._tree
        if doc_id is None or tree is None:
            return True
        return self.gateway.save(doc_id, tree).remote

    # --- edits ---

    def insert_child(self, parent_id: str, node: ContentNode) -> bool:
        return self._commit(operations.insert_child(self.tree, parent_id, node))

    def add_child(self, parent_id: str, *, name: str | None = None) -> ContentNode | None:
        """Add a blank child whose kind suits the parent (category under root, ...)."""
        parent = find_node(self.tree, parent_id)
        if parent is None:
            return None
        node = operations.new_node(operations.default_child_kind(parent.kind), name=name)
        self.insert_child(parent_id, node)
        return node

    def update_node(self, node_id: str, patch: Mapping[str, Any]) -> bool:
        """Merge patch into a node and stamp its lastModified time."""
        if find_node(self.tree, node_id) is None:
            return False
        return self._commit(
            operations.update_node(self.tree, node_id, {**patch, "lastModified": now_ms()})
        )

    def change_node_id(self, old_id: str, new_id: str) -> IdChangeResult:
        result = operations.change_node_id(self.tree, old_id, new_id)
        if result.success:
            self._commit(result.tree)
        return result

    def delete_node(self, node_id: str) -> bool:
        return self._commit(operations.delete_node(self.tree, node_id))

    def move_node(self, source_id: str, target_id: str, position: MovePosition) -> bool:
        return self._commit(operations.move_node(self.tree, source_id, target_id, position))

    def apply_actions(self, actions: Iterable[ArchitectAction]) -> ApplyReport:
        report = apply_actions(self.tree, actions)
        self._commit(report.tree)
        return report

    def ask_architect(self, architect: ArchitectProtocol, instruction: str) -> tuple[str, ApplyReport]:
        """Send the current tree to the AI service and apply the actions it proposes."""
        response = architect.propose(self.tree, instruction)
        logger.info("Architect proposed {} action(s): {}", len(response.actions), response.summary)
        return response.summary, self.apply_actions(response.actions)

    def apply_fix(self, issue: HealthIssue) -> bool:
        return self._commit(apply_fix(self.tree, issue))

    # --- documents ---

    async def open(self, doc_id: str) -> bool:
        """Load a document, saving pending edits of the current one first."""
        if self._doc_id is not None:
            await self.autosave.flush()
        tree = await asyncio.to_thread(self.gateway.load, doc_id)
        if tree is None:
            logger.warning("Document {!r} not found", doc_id)
            return False
        self._doc_id, self._tree = doc_id, tree
        self._notify()
        return True

    async def create(
        self,
        name: str,
        *,
        template: HotelTemplate | None = None,
        keep_values: bool = True,
    ) -> str:
        """Create and open a new document, optionally cloned from a template."""
        if self._doc_id is not None:
            await self.autosave.flush()
        if template is None:
            base = operations.initial_tree(name)
        else:
            base = tree_from_template(template.data, name, keep_values=keep_values)

        doc_id = await asyncio.to_thread(self.gateway.create, base)
        self._doc_id, self._tree = doc_id, replace(base, id=doc_id)
        self._notify()
        return doc_id

    async def save_now(self) -> None:
        """Save immediately; raise SaveFailedError unless the remote store took it."""
        if self._doc_id is None:
            msg = "No document is open"
            raise NoDocumentError(msg)
        if not await self.autosave.save_now():
            msg = f"Could not save {self._doc_id!r} to the remote store; changes are kept locally"
            raise SaveFailedError(msg) from self.autosave.last_error

    async def close(self) -> None:
        if self._doc_id is not None:
            await self.autosave.flush()
        self.autosave.close()
