"""Protocols for dependency injection across the persistence and AI seams."""

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from hotel_cms.core.actions import ArchitectResponse
from hotel_cms.core.sync.writes import Write
from hotel_cms.models.node import ContentNode


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """Protocol for remote document stores (Firestore or an in-memory fake).

    Paths are slash separated, alternating collection and document ids, e.g.
    ``hotels/h1/nodes/c1``. Implementations raise RemoteStoreError on failure.
    """

    def get(self, path: str) -> dict[str, Any] | None:
        """Return the fields of a document, or None if it does not exist."""
        ...

    def list_documents(
        self, collection: str, *, fields: Sequence[str] | None = None
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return (document id, fields) for every document in a collection."""
        ...

    def commit(self, writes: Sequence[Write]) -> None:
        """Apply all writes atomically."""
        ...


@runtime_checkable
class ArchitectProtocol(Protocol):
    """Protocol for the AI service that proposes structural edits."""

    def propose(self, tree: ContentNode, instruction: str) -> ArchitectResponse:
        """Return a summary and an ordered list of actions for the instruction."""
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class ClockProtocol(Protocol):
    """Protocol for the timer source used by the autosave scheduler."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback after delay seconds unless the returned handle is cancelled."""
        ...
