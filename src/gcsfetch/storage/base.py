"""
Object store interface consumed by the fetch service.

Only two read-only operations are needed: open an object for streaming
and list objects under a key prefix. Implementations may be shared across
concurrent fetches.
"""

from __future__ import annotations

from typing import BinaryIO, Iterator, Protocol, runtime_checkable

from gcsfetch.models.objects import ObjectDescriptor


@runtime_checkable
class ObjectStore(Protocol):
    def open_read(self, container: str, key: str) -> BinaryIO:
        """Open an object for reading. Raises ObjectNotFoundError/BackendError."""
        ...

    def list_objects(
        self,
        container: str,
        prefix: str,
        limit: int | None = None,
    ) -> Iterator[ObjectDescriptor]:
        """Lazily yield objects whose key starts with prefix, in backend order."""
        ...
