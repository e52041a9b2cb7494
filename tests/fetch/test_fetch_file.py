"""Tests for single-object fetch."""

import asyncio
import os

import pytest

from gcsfetch.exceptions import (
    BackendError,
    FetchCancelledError,
    LocalIOError,
    ObjectNotFoundError,
)
from gcsfetch.models import TransferMode
from gcsfetch.services.fetch import CancelToken
from gcsfetch.services.fetch._config import PARTIAL_SUFFIX

BUCKET = "test-bucket"


class TestFetchFile:
    """Tests for AsyncFetchService.fetch_file()."""

    @pytest.mark.asyncio
    async def test_byte_identical(self, async_fetch_service, memory_store, tmp_path):
        data = os.urandom(3 * 1024 * 1024 + 17)
        memory_store.put(BUCKET, "blobs/random.bin", data)
        dest = tmp_path / "random.bin"

        result = await async_fetch_service.fetch_file(f"gs://{BUCKET}/blobs/random.bin", dest)

        assert dest.read_bytes() == data
        assert result.mode is TransferMode.FILE
        assert result.size == len(data)
        assert result.objects_count == 1
        assert result.files == [dest]

    @pytest.mark.asyncio
    async def test_creates_parent_directories(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.txt", b"hello")
        dest = tmp_path / "deep" / "nested" / "a.txt"

        await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.txt", dest)

        assert dest.read_bytes() == b"hello"

    @pytest.mark.asyncio
    async def test_truncates_existing_file(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.txt", b"new")
        dest = tmp_path / "a.txt"
        dest.write_bytes(b"much longer old content")

        await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.txt", dest)

        assert dest.read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_empty_object(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "empty", b"")
        dest = tmp_path / "empty"

        result = await async_fetch_service.fetch_file(f"gs://{BUCKET}/empty", dest)

        assert dest.exists()
        assert result.size == 0

    @pytest.mark.asyncio
    async def test_progress_callback(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.bin", b"x" * 5000)
        async_fetch_service.configure(chunk_size=2048)
        calls = []

        await async_fetch_service.fetch_file(
            f"gs://{BUCKET}/a.bin", tmp_path / "a.bin", on_progress=calls.append
        )

        assert calls == [2048, 4096, 5000]

    @pytest.mark.asyncio
    async def test_missing_object(self, async_fetch_service, tmp_path):
        dest = tmp_path / "missing.txt"

        with pytest.raises(ObjectNotFoundError) as exc_info:
            await async_fetch_service.fetch_file(f"gs://{BUCKET}/missing.txt", dest)

        assert exc_info.value.container == BUCKET
        assert exc_info.value.key == "missing.txt"
        assert not dest.exists()

    @pytest.mark.asyncio
    async def test_open_error_wrapped(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.txt", b"x")
        memory_store.open_errors["a.txt"] = TimeoutError("read timed out")

        with pytest.raises(BackendError) as exc_info:
            await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.txt", tmp_path / "a.txt")

        assert exc_info.value.stage == "read"
        assert isinstance(exc_info.value.__cause__, TimeoutError)

    @pytest.mark.asyncio
    async def test_parent_is_a_file(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.txt", b"x")
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(LocalIOError) as exc_info:
            await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.txt", blocker / "a.txt")

        assert exc_info.value.stage == "write"

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.txt", b"x")
        token = CancelToken()
        token.cancel()

        with pytest.raises(FetchCancelledError):
            await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.txt", tmp_path / "a.txt", cancel=token)

        assert memory_store.opened == []

    @pytest.mark.asyncio
    async def test_cancel_mid_copy(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "large.bin", b"L" * 64 * 1024)
        async_fetch_service.configure(chunk_size=1024)
        token = CancelToken()
        seen = []

        def on_progress(transferred):
            seen.append(transferred)
            if transferred >= 4096:
                token.cancel()

        dest = tmp_path / "large.bin"
        with pytest.raises(FetchCancelledError):
            await async_fetch_service.fetch_file(
                f"gs://{BUCKET}/large.bin", dest, cancel=token, on_progress=on_progress
            )

        assert seen[-1] == 4096
        # Atomic writes: nothing left behind
        assert not dest.exists()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_timeout(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.txt", b"x")
        async_fetch_service.configure(timeout=1e-9)

        with pytest.raises(FetchCancelledError) as exc_info:
            await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.txt", tmp_path / "a.txt")

        assert exc_info.value.reason == "timed out"


class TestPartialWrites:
    """Tests for atomic vs direct writes on failure."""

    @pytest.mark.asyncio
    async def test_atomic_failure_leaves_nothing(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.bin", b"A" * 4096)
        memory_store.read_failures["a.bin"] = 1
        async_fetch_service.configure(chunk_size=1024)
        dest = tmp_path / "a.bin"

        with pytest.raises(BackendError):
            await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.bin", dest)

        assert not dest.exists()
        assert not (tmp_path / f"a.bin{PARTIAL_SUFFIX}").exists()

    @pytest.mark.asyncio
    async def test_atomic_failure_keeps_previous_file(
        self, async_fetch_service, memory_store, tmp_path
    ):
        memory_store.put(BUCKET, "a.bin", b"A" * 4096)
        memory_store.read_failures["a.bin"] = 1
        async_fetch_service.configure(chunk_size=1024)
        dest = tmp_path / "a.bin"
        dest.write_bytes(b"previous")

        with pytest.raises(BackendError):
            await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.bin", dest)

        assert dest.read_bytes() == b"previous"

    @pytest.mark.asyncio
    async def test_direct_failure_leaves_partial(self, async_fetch_service, memory_store, tmp_path):
        memory_store.put(BUCKET, "a.bin", b"A" * 4096)
        memory_store.read_failures["a.bin"] = 1
        async_fetch_service.configure(chunk_size=1024, atomic_writes=False)
        dest = tmp_path / "a.bin"

        with pytest.raises(BackendError):
            await async_fetch_service.fetch_file(f"gs://{BUCKET}/a.bin", dest)

        assert dest.read_bytes() == b"A" * 1024


async def _wait_for(predicate, timeout: float = 2.0) -> bool:
    """Poll until predicate() holds; worker threads finish after the task is gone."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() >= deadline:
            return False
        await asyncio.sleep(0.01)
    return True


class TestTaskCancellation:
    """Cancelling the awaiting task stops the copy running in the worker thread."""

    @pytest.mark.asyncio
    async def test_cancel_task_stops_copy(self, async_fetch_service, memory_store, tmp_path):
        size = 50 * 1024
        memory_store.put(BUCKET, "slow.bin", b"S" * size)
        memory_store.read_delays["slow.bin"] = 0.01
        async_fetch_service.configure(chunk_size=1024)
        caller_token = CancelToken()
        dest = tmp_path / "slow.bin"

        task = asyncio.create_task(
            async_fetch_service.fetch_file(f"gs://{BUCKET}/slow.bin", dest, cancel=caller_token)
        )
        assert await _wait_for(lambda: "slow.bin" in memory_store.streams)
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        stream = memory_store.streams["slow.bin"]
        assert await _wait_for(lambda: stream.closed)
        assert stream.bytes_read < size
        assert not dest.exists()
        assert list(tmp_path.iterdir()) == []
        # Only this invocation's token fired
        assert not caller_token.cancelled

    @pytest.mark.asyncio
    async def test_cancel_task_during_fetch(self, async_fetch_service, memory_store, tmp_path):
        size = 50 * 1024
        memory_store.put(BUCKET, "slow.bin", b"S" * size)
        memory_store.read_delays["slow.bin"] = 0.01
        async_fetch_service.configure(chunk_size=1024)
        dest = tmp_path / "slow.bin"

        task = asyncio.create_task(async_fetch_service.fetch(f"gs://{BUCKET}/slow.bin", dest))
        assert await _wait_for(lambda: "slow.bin" in memory_store.streams)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        stream = memory_store.streams["slow.bin"]
        assert await _wait_for(lambda: stream.closed)
        assert stream.bytes_read < size
        assert not dest.exists()
