"""Hotel content management: content trees, sharded persistence and autosave."""

from hotel_cms.core.sync.local_cache import LocalCache
from hotel_cms.core.sync.shard_sync import SaveResult, ShardSync
from hotel_cms.firestore import FirestoreClient
from hotel_cms.models.node import Attribute, ContentNode, HotelSummary, HotelTemplate
from hotel_cms.protocols import ArchitectProtocol, ClockProtocol, DocumentStoreProtocol
from hotel_cms.session import EditorSession, SaveFailedError

__all__ = [
    "ArchitectProtocol",
    "Attribute",
    "ClockProtocol",
    "ContentNode",
    "DocumentStoreProtocol",
    "EditorSession",
    "FirestoreClient",
    "HotelSummary",
    "HotelTemplate",
    "LocalCache",
    "SaveFailedError",
    "SaveResult",
    "ShardSync",
]
