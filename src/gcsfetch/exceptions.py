"""
gcsfetch exception hierarchy.

Every error raised by the fetch pipeline derives from GCSFetchError and
carries the stage that failed plus the container, key or local path
involved, so a caller can decide what to retry.

Stages:
    parse    - URL could not be turned into a location
    detect   - listing for file/directory classification failed
    list     - listing for a directory fetch failed
    read     - opening or reading an object failed
    write    - creating or writing a local file failed
    prepare  - removing/creating the local destination failed
"""

from __future__ import annotations

from pathlib import Path


class GCSFetchError(Exception):
    """Base exception for all gcsfetch errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Location Errors
# =============================================================================


class InvalidLocationError(GCSFetchError):
    """URL does not match the storage addressing convention."""

    stage = "parse"

    def __init__(self, url: str, reason: str = "not a valid GCS URL") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"[parse] {reason}: {url}")


# =============================================================================
# Backend Errors
# =============================================================================


class BackendError(GCSFetchError):
    """Listing or read failure reported by the storage backend."""

    def __init__(
        self,
        message: str,
        stage: str = "read",
        container: str | None = None,
        key: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.stage = stage
        self.container = container
        self.key = key
        target = _format_target(container, key)
        super().__init__(f"[{stage}] {message}{target}", cause=cause)


class ObjectNotFoundError(BackendError):
    """Requested object does not exist in the bucket."""

    def __init__(
        self,
        container: str,
        key: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            "object not found",
            stage="read",
            container=container,
            key=key,
            cause=cause,
        )


# =============================================================================
# Local Filesystem Errors
# =============================================================================


class LocalIOError(GCSFetchError):
    """Local filesystem create, remove or write failure."""

    def __init__(
        self,
        message: str,
        stage: str = "write",
        path: str | Path | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.stage = stage
        self.path = str(path) if path is not None else None
        suffix = f" ({self.path})" if self.path else ""
        super().__init__(f"[{stage}] {message}{suffix}", cause=cause)


# =============================================================================
# Cancellation
# =============================================================================


class FetchCancelledError(GCSFetchError):
    """Fetch aborted by a cancel token or an expired deadline."""

    def __init__(self, stage: str = "read", reason: str = "cancelled") -> None:
        self.stage = stage
        self.reason = reason
        super().__init__(f"[{stage}] fetch {reason}")


def _format_target(container: str | None, key: str | None) -> str:
    if container is None:
        return ""
    if key:
        return f" (gs://{container}/{key})"
    return f" (gs://{container})"


__all__ = [
    "GCSFetchError",
    "InvalidLocationError",
    "BackendError",
    "ObjectNotFoundError",
    "LocalIOError",
    "FetchCancelledError",
]
