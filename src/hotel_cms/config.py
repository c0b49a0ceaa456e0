"""Configuration constants for hotel-cms."""

import os
from pathlib import Path

# Firebase project credentials (JSON with "projectId" and "apiKey"). First file found is used.
CREDENTIAL_FILES: list[Path] = [
    Path("~/.config/hotel-cms/firebase.json").expanduser(),
    Path("~/.config/secret/hotel-cms-firebase.json").expanduser(),
    Path(f"/run/user/{os.getuid()}/hotel-cms-firebase.json"),
]

# Directory with the local cache database. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/hotel-cms").expanduser(),
    Path("~/.hotel-cms").expanduser(),
    Path("/tmp/hotel-cms"),
]

FIRESTORE_BASE_URL: str = "https://firestore.googleapis.com/v1"

# Seconds before an HTTP request to the document store is abandoned.
REQUEST_TIMEOUT: float = 30.0

# Page size when enumerating a collection.
LIST_PAGE_SIZE: int = 300

# Remote collection layout.
HOTELS_COLLECTION: str = "hotels"
SHARDS_SUBCOLLECTION: str = "nodes"
PERSONAS_SUBCOLLECTION: str = "personas"
NODE_TEMPLATES_SUBCOLLECTION: str = "nodeTemplates"
TEMPLATES_COLLECTION: str = "templates"

# Local cache key namespace.
CACHE_KEY_PREFIX: str = "cms_"
HOTELS_LIST_KEY: str = CACHE_KEY_PREFIX + "hotels_list"
TEMPLATES_LIST_KEY: str = CACHE_KEY_PREFIX + "templates_list"
HOTEL_DATA_PREFIX: str = CACHE_KEY_PREFIX + "hotel_data_"
RECORDS_PREFIX: str = CACHE_KEY_PREFIX + "records_"

CACHE_DB_NAME: str = "cache.db"

# Quiet period (seconds) after the last edit before an autosave runs.
AUTOSAVE_DELAY: float = 2.0

# How long (seconds) the "saved" status is shown before settling back to idle.
SAVED_SETTLE_DELAY: float = 3.0

UNTITLED_HOTEL: str = "Untitled Hotel"


def resolve_data_directory() -> Path:
    """Return the first existing data directory, or the first candidate if none exist."""
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
