"""Wire the persistence gateway from configuration."""

import os
from pathlib import Path

from loguru import logger

from hotel_cms.config import CACHE_DB_NAME, resolve_data_directory
from hotel_cms.core.sync.local_cache import LocalCache
from hotel_cms.core.sync.shard_sync import ShardSync
from hotel_cms.firestore import FirestoreClient

DATA_DIR_ENV = "HOTEL_CMS_DATA_DIR"
OFFLINE_ENV = "HOTEL_CMS_OFFLINE"


def data_directory(data_dir: Path | None = None) -> Path:
    if data_dir is not None:
        return data_dir
    env = os.environ.get(DATA_DIR_ENV)
    return Path(env) if env else resolve_data_directory()


def offline_requested() -> bool:
    return os.environ.get(OFFLINE_ENV, "").lower() in ("1", "true", "yes")


def open_gateway(data_dir: Path | None = None, *, offline: bool = False) -> ShardSync:
    """Return a ShardSync over Firestore (unless offline) and the local cache.

    Raises RuntimeError when online and no credentials file can be found.
    """
    cache = LocalCache.open(data_directory(data_dir) / CACHE_DB_NAME)
    if offline or offline_requested():
        logger.debug("Running offline, local cache only")
        return ShardSync(None, cache)
    return ShardSync(FirestoreClient(), cache)
