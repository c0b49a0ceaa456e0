"""Shared test fixtures."""

from collections.abc import Iterator

import pytest

from hotel_cms.core.sync.local_cache import LocalCache
from hotel_cms.core.sync.shard_sync import ShardSync
from hotel_cms.models.node import ContentNode
from hotel_cms.models.serialization import node_from_dict
from tests.unit.fakes import FakeDocumentStore
from tests.unit.sample_data import HOTEL_DATA


@pytest.fixture
def hotel() -> ContentNode:
    """A small but varied hotel tree."""
    return node_from_dict(HOTEL_DATA)


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def cache() -> Iterator[LocalCache]:
    c = LocalCache.open(":memory:")
    yield c
    c.close()


@pytest.fixture
def gateway(store: FakeDocumentStore, cache: LocalCache) -> ShardSync:
    return ShardSync(store, cache)
