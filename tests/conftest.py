"""
Pytest configuration and fixtures for gcsfetch tests.
"""

from __future__ import annotations

import io
import time
from typing import Iterator

import pytest

from gcsfetch.config import FetchSettings
from gcsfetch.exceptions import ObjectNotFoundError
from gcsfetch.models.objects import ObjectDescriptor


class FailingReader(io.BytesIO):
    """Readable stream that raises after `fail_after` successful reads."""

    def __init__(self, data: bytes, fail_after: int = 0) -> None:
        super().__init__(data)
        self._reads = 0
        self._fail_after = fail_after

    def read(self, size: int = -1) -> bytes:
        if self._reads >= self._fail_after:
            raise ConnectionResetError("connection reset by peer")
        self._reads += 1
        return super().read(size)


class SlowReader(io.BytesIO):
    """Readable stream that sleeps before every read and counts bytes served."""

    def __init__(self, data: bytes, delay: float) -> None:
        super().__init__(data)
        self._delay = delay
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        time.sleep(self._delay)
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk


class MemoryObjectStore:
    """
    In-memory ObjectStore for testing without a real bucket.

    Listing yields keys in lexicographic order, like GCS. Every call and
    every yielded descriptor is recorded so tests can assert on backend
    traffic.
    """

    def __init__(self, objects: dict[str, dict[str, bytes]] | None = None) -> None:
        self.objects = objects or {}
        self.list_calls: list[tuple[str, str, int | None]] = []
        self.yielded = 0
        self.opened: list[str] = []
        # key -> exception raised by open_read
        self.open_errors: dict[str, BaseException] = {}
        # key -> number of good reads before the stream breaks
        self.read_failures: dict[str, int] = {}
        self.list_error: BaseException | None = None
        # key -> seconds slept before each read
        self.read_delays: dict[str, float] = {}
        # key -> last stream handed out by open_read
        self.streams: dict[str, io.BytesIO] = {}

    def put(self, container: str, key: str, data: bytes) -> None:
        self.objects.setdefault(container, {})[key] = data

    def open_read(self, container: str, key: str):
        self.opened.append(key)
        if key in self.open_errors:
            raise self.open_errors[key]
        bucket = self.objects.get(container, {})
        if key not in bucket:
            raise ObjectNotFoundError(container, key)
        if key in self.read_failures:
            stream = FailingReader(bucket[key], self.read_failures[key])
        elif key in self.read_delays:
            stream = SlowReader(bucket[key], self.read_delays[key])
        else:
            stream = io.BytesIO(bucket[key])
        self.streams[key] = stream
        return stream

    def list_objects(
        self,
        container: str,
        prefix: str,
        limit: int | None = None,
    ) -> Iterator[ObjectDescriptor]:
        self.list_calls.append((container, prefix, limit))
        if self.list_error is not None:
            raise self.list_error
        count = 0
        for key in sorted(self.objects.get(container, {})):
            if not key.startswith(prefix):
                continue
            if limit is not None and count >= limit:
                return
            count += 1
            self.yielded += 1
            yield ObjectDescriptor(key=key, size=len(self.objects[container][key]))


@pytest.fixture
def memory_store() -> MemoryObjectStore:
    """Provide an empty in-memory store."""
    return MemoryObjectStore()


@pytest.fixture
def settings() -> FetchSettings:
    """Provide default settings, isolated from the environment."""
    return FetchSettings(_env_file=None)


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def reset_fetch_settings():
    """Reset settings before and after test."""
    from gcsfetch.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def failing_reader():
    """Factory for streams that break after N reads."""
    return FailingReader


@pytest.fixture
def restore_gcsfetch_logger():
    """Undo setup_logging() changes made during a test."""
    import logging

    logger = logging.getLogger("gcsfetch")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate
