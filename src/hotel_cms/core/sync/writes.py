"""Batch write records and errors shared by document store implementations."""

from dataclasses import dataclass
from typing import Any, Literal


class RemoteStoreError(RuntimeError):
    """The remote document store could not complete a request."""


@dataclass(frozen=True)
class Write:
    """One entry of an atomic batch: replace a document, or delete it."""

    op: Literal["set", "delete"]
    path: str
    data: dict[str, Any] | None = None


def set_write(path: str, data: dict[str, Any]) -> Write:
    return Write(op="set", path=path, data=data)


def delete_write(path: str) -> Write:
    return Write(op="delete", path=path)


def sanitize(value: Any) -> Any:
    """Drop absent (None) values from maps and lists, depth-first.

    The remote store rejects absent markers, so every payload goes through
    this before it is written.
    """
    if isinstance(value, dict):
        return {k: sanitize(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [sanitize(v) for v in value if v is not None]
    return value
