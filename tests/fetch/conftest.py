"""
Pytest fixtures for fetch service tests.
"""

import pytest

from gcsfetch.services.fetch import AsyncFetchService, FetchService

BUCKET = "test-bucket"


@pytest.fixture
def bucket() -> str:
    return BUCKET


@pytest.fixture
def tree_store(memory_store):
    """Store with a small prefix tree and an unrelated sibling key."""
    memory_store.put(BUCKET, "prefix/a.txt", b"alpha")
    memory_store.put(BUCKET, "prefix/sub/b.txt", b"bravo bravo")
    memory_store.put(BUCKET, "other/c.txt", b"charlie")
    return memory_store


@pytest.fixture
def async_fetch_service(memory_store, settings):
    """Provide async fetch service over the in-memory store."""
    return AsyncFetchService(memory_store, settings)


@pytest.fixture
def sync_fetch_service(memory_store, settings):
    """Provide sync fetch service over the in-memory store."""
    return FetchService(memory_store, settings)
