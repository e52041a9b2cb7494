"""
Asynchronous fetch service.

Classifies a storage location as a single file or a prefix tree and
materializes it on local disk:
- File mode: one object streamed to the destination path
- Directory mode: destination replaced, every object under the prefix
  fetched to its relative path, fail-fast on the first error
"""

from __future__ import annotations

import asyncio
import os
import posixpath
import shutil
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator

from gcsfetch.exceptions import BackendError, GCSFetchError, LocalIOError
from gcsfetch.logging import get_logger
from gcsfetch.models.location import Location
from gcsfetch.models.objects import ObjectDescriptor, TransferMode
from gcsfetch.services.base import BaseService
from gcsfetch.services.fetch._cancel import CancelToken
from gcsfetch.services.fetch._config import DETECT_LIST_LIMIT, DIR_MODE, PARTIAL_SUFFIX
from gcsfetch.services.fetch._copy import copy_stream
from gcsfetch.services.fetch._location import resolve_location
from gcsfetch.services.fetch._models import FetchResult, TransferStats

if TYPE_CHECKING:
    from gcsfetch.config import FetchSettings
    from gcsfetch.storage.base import ObjectStore

logger = get_logger(__name__)

_DONE = object()


@contextmanager
def _cancel_on_task_cancel(token: CancelToken):
    """Fire token when the awaiting task is cancelled so worker threads stop too."""
    try:
        yield
    except asyncio.CancelledError:
        token.cancel()
        raise


def _close_listing(listing: Iterator[ObjectDescriptor]) -> None:
    try:
        listing.close()
    except ValueError:
        # Still running next() in a worker thread after task cancellation;
        # the fired token ends it at the next listing result.
        logger.debug("Listing still busy in worker thread, left to stop on cancel")


def object_destination(prefix: str, key: str, root: Path) -> Path:
    """
    Local path for an object fetched under a key prefix.

    The key is made relative to the prefix as a POSIX path and mapped onto
    local path parts, so "prefix/sub/b.txt" under "prefix/" lands at
    root/sub/b.txt on every platform.

    Raises:
        LocalIOError: The relative path escapes root or is root itself.
    """
    rel = posixpath.relpath(
        posixpath.normpath("/" + key),
        posixpath.normpath("/" + prefix),
    )
    parts = rel.split("/")
    if rel == "." or ".." in parts:
        raise LocalIOError(
            f"object key {key!r} does not resolve below prefix {prefix!r}",
            stage="write",
            path=root,
        )
    return root.joinpath(*parts)


class AsyncFetchService(BaseService):
    """
    Asynchronous fetch service.

    Decides between file and directory mode by listing at most two objects
    under the location's key, then runs the matching transfer.

    Example:
        >>> service = AsyncFetchService(GCSObjectStore())
        >>> result = await service.fetch(
        ...     "https://www.googleapis.com/storage/v1/my-bucket/models/v3/",
        ...     Path("./models"),
        ... )
        >>> print(result.summary())
    """

    def __init__(
        self,
        store: ObjectStore | None = None,
        settings: FetchSettings | None = None,
    ) -> None:
        super().__init__(store, settings)
        self._chunk_size = self._settings.chunk_size
        self._max_workers = self._settings.max_workers
        self._timeout = self._settings.timeout
        self._atomic_writes = self._settings.atomic_writes

    def configure(
        self,
        chunk_size: int | None = None,
        max_workers: int | None = None,
        timeout: float | None = None,
        atomic_writes: bool | None = None,
    ) -> None:
        """
        Configure fetch settings for this service.

        Args:
            chunk_size: Bytes per read during copy.
            max_workers: Concurrent object transfers in directory mode.
            timeout: Deadline for each fetch call (seconds).
            atomic_writes: Write via temporary file + rename.
        """
        if chunk_size is not None:
            if chunk_size <= 0:
                raise ValueError("chunk_size must be positive")
            self._chunk_size = chunk_size
        if max_workers is not None:
            if max_workers < 1:
                raise ValueError("max_workers must be >= 1")
            self._max_workers = max_workers
        if timeout is not None:
            self._timeout = timeout
        if atomic_writes is not None:
            self._atomic_writes = atomic_writes

    # =========================================================================
    # Public API
    # =========================================================================

    async def detect_mode(
        self,
        target: str | Location,
        cancel: CancelToken | None = None,
    ) -> TransferMode:
        """
        Classify a location as a single file or a directory.

        Zero or one matching object is FILE (a missing object then fails
        clearly in fetch_file); two or more is DIRECTORY.

        Args:
            target: Storage URL or parsed Location.
            cancel: Cancellation token.

        Returns:
            TransferMode.FILE or TransferMode.DIRECTORY.
        """
        location = resolve_location(target)
        token = self._token(cancel)

        with _cancel_on_task_cancel(token):
            matches = await self._run_blocking(
                self._take_listing, location, DETECT_LIST_LIMIT, token
            )
        mode = TransferMode.DIRECTORY if len(matches) >= 2 else TransferMode.FILE
        logger.debug(f"Detected {mode.value} mode for {location}")
        return mode

    async def fetch_file(
        self,
        target: str | Location,
        dest: str | Path,
        cancel: CancelToken | None = None,
        on_progress: Callable[[int], None] | None = None,
    ) -> FetchResult:
        """
        Fetch one object to an exact local path.

        Args:
            target: Storage URL or parsed Location.
            dest: Output file path (parents are created).
            cancel: Cancellation token.
            on_progress: Callback(transferred_bytes), called from a worker thread.

        Returns:
            FetchResult for the written file.

        Raises:
            ObjectNotFoundError: Object does not exist.
            BackendError: Read failure.
            LocalIOError: Directory or file creation/write failure.
            FetchCancelledError: Cancelled or timed out.
        """
        location = resolve_location(target)
        token = self._token(cancel)
        dest = Path(dest)
        start = time.perf_counter()

        with _cancel_on_task_cancel(token):
            stats = await self._run_blocking(
                self._fetch_object, location, dest, token, on_progress
            )

        elapsed = time.perf_counter() - start
        logger.info(f"Fetched {location} -> {dest} ({stats.bytes_transferred:,} bytes)")
        return FetchResult(
            mode=TransferMode.FILE,
            local_path=dest,
            size=stats.bytes_transferred,
            objects_count=1,
            elapsed=elapsed,
            files=[dest],
        )

    async def fetch_dir(
        self,
        target: str | Location,
        dest: str | Path,
        cancel: CancelToken | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> FetchResult:
        """
        Fetch every object under a key prefix into a local directory.

        An existing destination is removed first (replace, not merge). The
        first failing object aborts the whole fetch and is re-raised; no
        later object is started.

        Args:
            target: Storage URL or parsed Location (key is the prefix).
            dest: Root directory to recreate the tree under.
            cancel: Cancellation token.
            on_progress: Callback(objects_done, bytes_done) after each object.

        Returns:
            FetchResult listing every written file.
        """
        location = resolve_location(target)
        token = self._token(cancel)
        root = Path(dest)
        start = time.perf_counter()

        with _cancel_on_task_cancel(token):
            await self._run_blocking(self._prepare_root, root)

            if self._max_workers > 1:
                files, total = await self._fetch_tree_parallel(location, root, token, on_progress)
            else:
                files, total = await self._fetch_tree_sequential(location, root, token, on_progress)

        elapsed = time.perf_counter() - start
        logger.info(f"Fetched {len(files)} objects from {location} -> {root} ({total:,} bytes)")
        return FetchResult(
            mode=TransferMode.DIRECTORY,
            local_path=root,
            size=total,
            objects_count=len(files),
            elapsed=elapsed,
            files=files,
        )

    async def fetch(
        self,
        target: str | Location,
        dest: str | Path,
        mode: TransferMode | str | None = None,
        cancel: CancelToken | None = None,
    ) -> FetchResult:
        """
        Detect the transfer mode (unless given) and fetch accordingly.

        Args:
            target: Storage URL or parsed Location.
            dest: File path (file mode) or root directory (directory mode).
            mode: Force FILE or DIRECTORY instead of detecting.
            cancel: Cancellation token.

        Returns:
            FetchResult from the chosen transfer.
        """
        location = resolve_location(target)
        # One deadline for detection and transfer together
        token = self._token(cancel)

        mode = TransferMode(mode) if mode is not None else None

        with _cancel_on_task_cancel(token):
            if mode is None:
                mode = await self.detect_mode(location, cancel=token)
            if mode is TransferMode.DIRECTORY:
                return await self.fetch_dir(location, dest, cancel=token)
            return await self.fetch_file(location, dest, cancel=token)

    # =========================================================================
    # Directory strategies
    # =========================================================================

    async def _fetch_tree_sequential(
        self,
        location: Location,
        root: Path,
        token: CancelToken,
        on_progress: Callable[[int, int], None] | None,
    ) -> tuple[list[Path], int]:
        files: list[Path] = []
        total = 0

        listing = self._iter_listing(location, None, token)
        try:
            while True:
                obj = await self._run_blocking(next, listing, _DONE)
                if obj is _DONE:
                    break

                path = await self._materialize(location, obj, root, token)
                if path is None:
                    continue
                stats = await self._run_blocking(
                    self._fetch_object,
                    Location(container=location.container, key=obj.key),
                    path,
                    token,
                    None,
                )
                files.append(path)
                total += stats.bytes_transferred
                if on_progress:
                    on_progress(len(files), total)
        finally:
            _close_listing(listing)

        return files, total

    async def _fetch_tree_parallel(
        self,
        location: Location,
        root: Path,
        token: CancelToken,
        on_progress: Callable[[int, int], None] | None,
    ) -> tuple[list[Path], int]:
        """
        Bounded worker pool; the first failure cancels in-flight transfers.

        Files are returned in listing order, not completion order.
        """
        workers = token.child()
        semaphore = asyncio.Semaphore(self._max_workers)
        # (listing index, path) of finished transfers
        done: list[tuple[int, Path]] = []
        totals = [0]
        first_error: list[BaseException] = []
        tasks: list[asyncio.Task] = []

        async def transfer(index: int, obj: ObjectDescriptor, path: Path) -> None:
            try:
                stats = await self._run_blocking(
                    self._fetch_object,
                    Location(container=location.container, key=obj.key),
                    path,
                    workers,
                    None,
                )
            except BaseException as e:
                if not first_error:
                    first_error.append(e)
                    workers.cancel()
                raise
            finally:
                semaphore.release()
            done.append((index, path))
            totals[0] += stats.bytes_transferred
            if on_progress:
                on_progress(len(done), totals[0])

        listing = self._iter_listing(location, None, workers)
        try:
            while not first_error:
                obj = await self._run_blocking(next, listing, _DONE)
                if obj is _DONE:
                    break
                path = await self._materialize(location, obj, root, workers)
                if path is None:
                    continue
                await semaphore.acquire()
                if first_error:
                    semaphore.release()
                    break
                tasks.append(asyncio.create_task(transfer(len(tasks), obj, path)))
        except BaseException as e:
            if not first_error:
                first_error.append(e)
            workers.cancel()
        finally:
            _close_listing(listing)

        await asyncio.gather(*tasks, return_exceptions=True)

        if first_error:
            raise first_error[0]
        return [path for _, path in sorted(done)], totals[0]

    async def _materialize(
        self,
        location: Location,
        obj: ObjectDescriptor,
        root: Path,
        token: CancelToken,
    ) -> Path | None:
        """Destination for obj, or None for folder placeholders (created here)."""
        token.raise_if_cancelled("list")
        if not obj.is_placeholder:
            return object_destination(location.key, obj.key, root)

        # Marker for the prefix itself maps to root, which already exists
        if posixpath.normpath("/" + obj.key) != posixpath.normpath("/" + location.key):
            path = object_destination(location.key, obj.key, root)
            await self._run_blocking(self._make_dirs, path)
        else:
            await self._run_blocking(self._make_dirs, root)
        return None

    # =========================================================================
    # Blocking helpers (run in worker threads)
    # =========================================================================

    def _token(self, cancel: CancelToken | None) -> CancelToken:
        """Per-invocation token: follows cancel, and can fire without touching it."""
        return CancelToken(timeout=self._timeout, parent=cancel)

    def _iter_listing(
        self,
        location: Location,
        limit: int | None,
        token: CancelToken,
    ) -> Iterator[ObjectDescriptor]:
        stage = "detect" if limit is not None else "list"
        try:
            for obj in self.store.list_objects(location.container, location.key, limit=limit):
                token.raise_if_cancelled(stage)
                yield obj
        except GCSFetchError:
            raise
        except Exception as e:
            raise BackendError(
                f"listing failed: {e}",
                stage=stage,
                container=location.container,
                key=location.key,
                cause=e,
            ) from e

    def _take_listing(
        self,
        location: Location,
        limit: int,
        token: CancelToken,
    ) -> list[ObjectDescriptor]:
        token.raise_if_cancelled("detect")
        results: list[ObjectDescriptor] = []
        listing = self._iter_listing(location, limit, token)
        try:
            for obj in listing:
                results.append(obj)
                if len(results) >= limit:
                    break
        finally:
            listing.close()
        return results

    def _prepare_root(self, root: Path) -> None:
        """Remove an existing destination and make sure its parent exists."""
        try:
            if root.is_dir() and not root.is_symlink():
                logger.debug(f"Removing existing directory {root}")
                shutil.rmtree(root)
            elif root.exists() or root.is_symlink():
                logger.debug(f"Removing existing file {root}")
                root.unlink()
        except OSError as e:
            raise LocalIOError(
                f"failed to remove existing destination: {e}",
                stage="prepare",
                path=root,
                cause=e,
            ) from e

        try:
            root.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise LocalIOError(
                f"failed to create parent directory: {e}",
                stage="prepare",
                path=root.parent,
                cause=e,
            ) from e

    def _make_dirs(self, path: Path) -> None:
        try:
            path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise LocalIOError(
                f"failed to create directory: {e}", stage="write", path=path, cause=e
            ) from e

    def _fetch_object(
        self,
        location: Location,
        dest: Path,
        token: CancelToken,
        on_progress: Callable[[int], None] | None,
    ) -> TransferStats:
        """Open, create parents, stream to dest. Runs in a worker thread."""
        token.raise_if_cancelled("read")

        try:
            source = self.store.open_read(location.container, location.key)
        except GCSFetchError:
            raise
        except Exception as e:
            raise BackendError(
                f"failed to open object: {e}",
                stage="read",
                container=location.container,
                key=location.key,
                cause=e,
            ) from e

        stats = TransferStats()

        def progress(transferred: int) -> None:
            stats.chunks_count += 1
            if on_progress:
                on_progress(transferred)

        with source:
            self._make_dirs(dest.parent)

            target = dest.with_name(dest.name + PARTIAL_SUFFIX) if self._atomic_writes else dest
            try:
                sink = open(target, "wb")
            except OSError as e:
                raise LocalIOError(
                    f"failed to create file: {e}", stage="write", path=target, cause=e
                ) from e

            try:
                with sink:
                    stats.bytes_transferred = copy_stream(
                        source,
                        sink,
                        cancel=token,
                        chunk_size=self._chunk_size,
                        on_progress=progress,
                        location=location,
                        path=target,
                    )
                if self._atomic_writes:
                    try:
                        os.replace(target, dest)
                    except OSError as e:
                        raise LocalIOError(
                            f"failed to move file into place: {e}",
                            stage="write",
                            path=dest,
                            cause=e,
                        ) from e
            except BaseException:
                if self._atomic_writes:
                    target.unlink(missing_ok=True)
                raise

        logger.debug(f"Copied {location} -> {dest} ({stats.bytes_transferred:,} bytes)")
        return stats
