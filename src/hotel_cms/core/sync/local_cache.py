"""Local persistent cache holding whole trees, used when the remote store is unreachable.

Each document is one record (no sharding), plus an index record mirroring the
list of HotelSummary entries. Keys are namespaced so the table can hold
other records (templates, personas) side by side.
"""

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any

from loguru import logger

from hotel_cms.config import HOTEL_DATA_PREFIX, HOTELS_LIST_KEY, UNTITLED_HOTEL
from hotel_cms.core.database.schema import migrate_schema
from hotel_cms.core.tree.ids import now_ms
from hotel_cms.models.node import ContentNode, HotelSummary
from hotel_cms.models.serialization import node_from_dict, node_to_dict


class LocalCache:
    """Key/value records in SQLite. Every write is committed immediately."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        # Saves run on worker threads; one connection is shared behind a lock.
        self._lock = threading.Lock()
        migrate_schema(conn)

    @classmethod
    def open(cls, path: str | Path) -> "LocalCache":
        """Open (creating if needed) a cache database file; ``:memory:`` works too."""
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        return cls(sqlite3.connect(str(path), check_same_thread=False))

    def close(self) -> None:
        self.conn.close()

    def get_json(self, key: str) -> Any | None:
        """Return the decoded record, or None if absent or unreadable."""
        with self._lock:
            row = self.conn.execute(
                "SELECT value FROM cache_records WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("Ignoring corrupt cache record {!r}", key)
            return None

    def put_json(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        with self._lock:
            self.conn.execute(
                "INSERT OR REPLACE INTO cache_records (key, value, updated_at) VALUES (?, ?, ?)",
                (key, payload, now_ms()),
            )
            self.conn.commit()

    def delete(self, key: str) -> None:
        with self._lock:
            self.conn.execute("DELETE FROM cache_records WHERE key = ?", (key,))
            self.conn.commit()

    # --- hotel trees ---

    def get_index(self) -> list[HotelSummary]:
        raw = self.get_json(HOTELS_LIST_KEY) or []
        return [HotelSummary(id=str(e["id"]), name=e.get("name") or UNTITLED_HOTEL) for e in raw]

    def _put_index(self, index: list[HotelSummary]) -> None:
        self.put_json(HOTELS_LIST_KEY, [{"id": h.id, "name": h.name} for h in index])

    def get_tree(self, doc_id: str) -> ContentNode | None:
        raw = self.get_json(HOTEL_DATA_PREFIX + doc_id)
        if raw is None:
            return None
        return node_from_dict(raw)

    def put_tree(self, doc_id: str, root: ContentNode) -> None:
        """Store a whole tree and keep its index entry (creating or renaming it) in step."""
        self.put_json(HOTEL_DATA_PREFIX + doc_id, node_to_dict(root))

        name = root.name or UNTITLED_HOTEL
        index = self.get_index()
        for i, entry in enumerate(index):
            if entry.id == doc_id:
                if entry.name != name:
                    index[i] = HotelSummary(id=doc_id, name=name)
                    self._put_index(index)
                return
        index.append(HotelSummary(id=doc_id, name=name))
        self._put_index(index)
