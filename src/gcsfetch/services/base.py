"""
Base class for gcsfetch services.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from gcsfetch.config import FetchSettings, get_settings

if TYPE_CHECKING:
    from gcsfetch.storage.base import ObjectStore

T = TypeVar("T")


class BaseService:
    """
    Holds the object store and settings shared by a service.

    The store is created from settings on first use unless one is passed
    in. Pass the same store to several services to share one client.
    """

    def __init__(
        self,
        store: ObjectStore | None = None,
        settings: FetchSettings | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()

    @property
    def store(self) -> ObjectStore:
        """Object store used by this service."""
        if self._store is None:
            from gcsfetch.storage.gcs import GCSObjectStore

            self._store = GCSObjectStore(project=self._settings.project)
        return self._store

    @property
    def settings(self) -> FetchSettings:
        return self._settings

    async def _run_blocking(self, func: Callable[..., T], *args: Any) -> T:
        """Run blocking backend/filesystem work in a worker thread."""
        return await asyncio.to_thread(func, *args)
