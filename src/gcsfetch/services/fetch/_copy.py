"""
Cancellable byte copy.

This is the only place cancellation is enforced at byte granularity; every
object transfer goes through copy_stream().
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Callable

from gcsfetch.exceptions import BackendError, GCSFetchError, LocalIOError
from gcsfetch.models.location import Location
from gcsfetch.services.fetch._cancel import CancelToken
from gcsfetch.services.fetch._config import DEFAULT_CHUNK_SIZE


def copy_stream(
    source: BinaryIO,
    sink: BinaryIO,
    cancel: CancelToken | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: Callable[[int], None] | None = None,
    location: Location | None = None,
    path: str | Path | None = None,
) -> int:
    """
    Copy source to sink in chunks, checking cancel before every chunk.

    On cancellation the sink keeps the prefix already written.

    Args:
        source: Readable binary stream.
        sink: Writable binary stream.
        cancel: Cancellation token.
        chunk_size: Max bytes per read.
        on_progress: Callback(transferred) after each chunk.
        location: Source location (for error messages).
        path: Sink path (for error messages).

    Returns:
        Total bytes copied.

    Raises:
        FetchCancelledError: Token fired before the copy finished.
        BackendError: Reading the source failed.
        LocalIOError: Writing the sink failed.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    container = location.container if location else None
    key = location.key if location else None
    total = 0

    while True:
        if cancel is not None:
            cancel.raise_if_cancelled("read")

        try:
            chunk = source.read(chunk_size)
        except GCSFetchError:
            raise
        except Exception as e:
            raise BackendError(
                f"read failed after {total} bytes: {e}",
                stage="read",
                container=container,
                key=key,
                cause=e,
            ) from e

        if not chunk:
            break

        try:
            sink.write(chunk)
        except OSError as e:
            raise LocalIOError(f"write failed: {e}", stage="write", path=path, cause=e) from e

        total += len(chunk)
        if on_progress:
            on_progress(total)

    return total
