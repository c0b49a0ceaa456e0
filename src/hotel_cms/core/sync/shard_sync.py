"""Persist a content tree as a root manifest plus one document per top-level child.

Remote layout::

    hotels/{doc_id}                  root scalars + childOrder
    hotels/{doc_id}/nodes/{child_id} the child's full subtree

Every remote failure degrades to the local cache; nothing here raises a
transport error to the caller.
"""

from dataclasses import dataclass, replace
from typing import Any

import requests
from loguru import logger

from hotel_cms.config import HOTELS_COLLECTION, SHARDS_SUBCOLLECTION, UNTITLED_HOTEL
from hotel_cms.core.sync.local_cache import LocalCache
from hotel_cms.core.sync.writes import RemoteStoreError, Write, delete_write, sanitize, set_write
from hotel_cms.core.tree.ids import generate_id
from hotel_cms.models.node import ContentNode, HotelSummary
from hotel_cms.models.serialization import node_from_dict, node_to_dict
from hotel_cms.protocols import DocumentStoreProtocol

CHILD_ORDER_FIELD = "childOrder"

# Errors that mean "remote unavailable" rather than a bug in our own data.
REMOTE_ERRORS = (RemoteStoreError, requests.RequestException)


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save; ``remote`` is False when only the local cache was written."""

    doc_id: str
    remote: bool


def root_path(doc_id: str) -> str:
    return f"{HOTELS_COLLECTION}/{doc_id}"


def shards_path(doc_id: str) -> str:
    return f"{root_path(doc_id)}/{SHARDS_SUBCOLLECTION}"


def split_tree(root: ContentNode) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    """Return (root manifest, child subtrees), all sanitized for the remote store."""
    manifest = node_to_dict(root, include_children=False)
    manifest[CHILD_ORDER_FIELD] = [child.id for child in root.children]
    children = [sanitize(node_to_dict(child)) for child in root.children]
    return sanitize(manifest), children


def assemble_tree(manifest: dict[str, Any], shards: list[tuple[str, dict[str, Any]]]) -> ContentNode:
    """Rebuild a tree from its manifest and shard documents.

    Children follow ``childOrder``; shards missing from it are appended in the
    order they were fetched. Ids listed in ``childOrder`` with no shard are skipped.
    """
    fields = dict(manifest)
    order = [str(i) for i in fields.pop(CHILD_ORDER_FIELD, None) or []]
    by_id: dict[str, dict[str, Any]] = {}
    for shard_id, data in shards:
        by_id[shard_id] = {"id": shard_id, **data}

    children: list[dict[str, Any]] = []
    for child_id in order:
        shard = by_id.pop(child_id, None)
        if shard is None:
            logger.debug("Manifest lists child {!r} without a shard document", child_id)
            continue
        children.append(shard)
    if by_id:
        logger.info("Appending {} child shard(s) missing from childOrder", len(by_id))
        children.extend(by_id.values())

    fields["children"] = children
    return node_from_dict(fields)


class ShardSync:
    """Gateway between the in-memory tree and the remote document store."""

    def __init__(self, remote: DocumentStoreProtocol | None, cache: LocalCache) -> None:
        # remote=None runs fully offline: every call goes straight to the cache.
        self.remote = remote
        self.cache = cache

    def save(self, doc_id: str, root: ContentNode) -> SaveResult:
        """Write the tree in one atomic batch, deleting shards of removed children."""
        if not doc_id:
            msg = "save() needs a document id"
            raise ValueError(msg)

        if self.remote is not None:
            try:
                self._save_remote(self.remote, doc_id, root)
            except REMOTE_ERRORS:
                logger.warning(
                    "Remote store unavailable, saving {!r} to the local cache", doc_id, exc_info=True
                )
            else:
                logger.debug("Saved {!r} with {} shard(s)", doc_id, len(root.children))
                return SaveResult(doc_id=doc_id, remote=True)

        self.cache.put_tree(doc_id, root)
        return SaveResult(doc_id=doc_id, remote=False)

    def _save_remote(self, remote: DocumentStoreProtocol, doc_id: str, root: ContentNode) -> None:
        manifest, children = split_tree(root)
        base = shards_path(doc_id)

        existing = {shard_id for shard_id, _ in remote.list_documents(base, fields=["id"])}
        current = set(manifest[CHILD_ORDER_FIELD])

        writes: list[Write] = [set_write(root_path(doc_id), manifest)]
        writes.extend(set_write(f"{base}/{child['id']}", child) for child in children)
        orphans = sorted(existing - current)
        writes.extend(delete_write(f"{base}/{shard_id}") for shard_id in orphans)
        if orphans:
            logger.debug("Removing orphan shards of {!r}: {}", doc_id, orphans)

        remote.commit(writes)

    def load(self, doc_id: str) -> ContentNode | None:
        """Return the stored tree, or None if neither the remote store nor the cache has it."""
        if not doc_id:
            return None
        if self.remote is None:
            return self.cache.get_tree(doc_id)

        try:
            manifest = self.remote.get(root_path(doc_id))
            if manifest is None:
                logger.debug("No remote document {!r}, checking local cache", doc_id)
                return self.cache.get_tree(doc_id)
            shards = self.remote.list_documents(shards_path(doc_id))
        except REMOTE_ERRORS:
            logger.warning(
                "Remote store unavailable, loading {!r} from the local cache", doc_id, exc_info=True
            )
            return self.cache.get_tree(doc_id)

        return assemble_tree(manifest, shards)

    def list(self) -> list[HotelSummary]:
        """Enumerate documents from their root manifests only."""
        if self.remote is None:
            return self.cache.get_index()
        try:
            docs = self.remote.list_documents(HOTELS_COLLECTION, fields=["name"])
        except REMOTE_ERRORS:
            logger.warning("Remote store unavailable, listing from the local cache", exc_info=True)
            return self.cache.get_index()
        return [HotelSummary(id=doc_id, name=data.get("name") or UNTITLED_HOTEL) for doc_id, data in docs]

    def create(self, root: ContentNode) -> str:
        """Persist a new tree under a fresh document id and return the id.

        The root node takes the document id, so the manifest is keyed by the root's id.
        """
        doc_id = generate_id("hotel")
        self.save(doc_id, replace(root, id=doc_id))
        logger.info("Created document {!r} ({})", doc_id, root.name or UNTITLED_HOTEL)
        return doc_id
