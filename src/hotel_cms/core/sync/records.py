"""Auxiliary records stored next to the hotel trees: templates, personas, node templates.

Each collection is a flat set of documents keyed by their own id, written one
at a time. Like the tree gateway, remote failures fall back to a list kept in
the local cache.
"""

from typing import Any

from loguru import logger

from hotel_cms.config import (
    HOTELS_COLLECTION,
    NODE_TEMPLATES_SUBCOLLECTION,
    PERSONAS_SUBCOLLECTION,
    RECORDS_PREFIX,
    TEMPLATES_COLLECTION,
    TEMPLATES_LIST_KEY,
)
from hotel_cms.core.sync.local_cache import LocalCache
from hotel_cms.core.sync.shard_sync import REMOTE_ERRORS
from hotel_cms.core.sync.writes import delete_write, sanitize, set_write
from hotel_cms.core.tree.ids import generate_id, now_ms
from hotel_cms.models.node import ContentNode, HotelTemplate
from hotel_cms.models.serialization import node_from_dict, node_to_dict
from hotel_cms.protocols import DocumentStoreProtocol


class RecordCollection:
    """Upsert/list/delete of plain JSON records in one remote collection."""

    def __init__(
        self,
        remote: DocumentStoreProtocol | None,
        cache: LocalCache,
        collection: str,
        *,
        cache_key: str | None = None,
        id_prefix: str = "rec",
    ) -> None:
        self.remote = remote
        self.cache = cache
        self.collection = collection
        self.cache_key = cache_key or RECORDS_PREFIX + collection.replace("/", "_")
        self.id_prefix = id_prefix

    def _local(self) -> list[dict[str, Any]]:
        return list(self.cache.get_json(self.cache_key) or [])

    def list(self) -> list[dict[str, Any]]:
        if self.remote is not None:
            try:
                docs = self.remote.list_documents(self.collection)
            except REMOTE_ERRORS:
                logger.warning(
                    "Remote store unavailable, listing {!r} from the local cache",
                    self.collection,
                    exc_info=True,
                )
            else:
                return [{**data, "id": doc_id} for doc_id, data in docs]
        return self._local()

    def upsert(self, record: dict[str, Any]) -> str:
        """Create or replace a record; a record without an id gets a fresh one. Returns the id."""
        record_id = str(record.get("id") or generate_id(self.id_prefix))
        data = sanitize({**record, "id": record_id})

        if self.remote is not None:
            try:
                self.remote.commit([set_write(f"{self.collection}/{record_id}", data)])
            except REMOTE_ERRORS:
                logger.warning(
                    "Remote store unavailable, keeping {!r} in the local cache",
                    record_id,
                    exc_info=True,
                )
            else:
                return record_id

        records = [r for r in self._local() if r.get("id") != record_id]
        records.append(data)
        self.cache.put_json(self.cache_key, records)
        return record_id

    def delete(self, record_id: str) -> None:
        if self.remote is not None:
            try:
                self.remote.commit([delete_write(f"{self.collection}/{record_id}")])
            except REMOTE_ERRORS:
                logger.warning(
                    "Remote store unavailable, deleting {!r} from the local cache",
                    record_id,
                    exc_info=True,
                )
            else:
                return
        self.cache.put_json(self.cache_key, [r for r in self._local() if r.get("id") != record_id])


def personas(remote: DocumentStoreProtocol | None, cache: LocalCache, doc_id: str) -> RecordCollection:
    """AI assistant personas of one hotel."""
    return RecordCollection(
        remote, cache, f"{HOTELS_COLLECTION}/{doc_id}/{PERSONAS_SUBCOLLECTION}", id_prefix="persona"
    )


def node_templates(
    remote: DocumentStoreProtocol | None, cache: LocalCache, doc_id: str
) -> RecordCollection:
    """Reusable node snippets of one hotel."""
    return RecordCollection(
        remote, cache, f"{HOTELS_COLLECTION}/{doc_id}/{NODE_TEMPLATES_SUBCOLLECTION}", id_prefix="tpl"
    )


def template_from_record(record: dict[str, Any]) -> HotelTemplate:
    return HotelTemplate(
        id=str(record["id"]),
        name=record.get("name") or "",
        description=record.get("description") or "",
        created_at=int(record.get("createdAt") or 0),
        data=node_from_dict(record["data"]),
    )


class TemplateLibrary:
    """Global library of whole-hotel templates."""

    def __init__(self, remote: DocumentStoreProtocol | None, cache: LocalCache) -> None:
        self.records = RecordCollection(
            remote, cache, TEMPLATES_COLLECTION, cache_key=TEMPLATES_LIST_KEY, id_prefix="template"
        )

    def list(self) -> list[HotelTemplate]:
        out: list[HotelTemplate] = []
        for record in self.records.list():
            try:
                out.append(template_from_record(record))
            except (KeyError, ValueError):
                logger.warning("Skipping malformed template record {!r}", record.get("id"))
        return out

    def get(self, template_id: str) -> HotelTemplate | None:
        for template in self.list():
            if template.id == template_id:
                return template
        return None

    def save(self, name: str, description: str, data: ContentNode) -> HotelTemplate:
        created_at = now_ms()
        template_id = self.records.upsert(
            {
                "name": name,
                "description": description,
                "createdAt": created_at,
                "data": node_to_dict(data),
            }
        )
        logger.info("Saved template {!r} as {!r}", name, template_id)
        return HotelTemplate(
            id=template_id, name=name, description=description, created_at=created_at, data=data
        )

    def delete(self, template_id: str) -> None:
        self.records.delete(template_id)
