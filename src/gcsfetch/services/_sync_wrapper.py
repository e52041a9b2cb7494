"""
Sync wrapper generator for async services.

Automatically generates sync methods from async methods.
Write only async code, sync is generated at class definition time.

Usage:
    class AsyncFetchService(BaseService):
        async def fetch(self, url: str, dest: Path) -> FetchResult:
            ...

    # Sync service is generated automatically
    FetchService = create_sync_service(AsyncFetchService)
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable

# Plain (non-async) methods forwarded as-is to the async instance
FORWARDED_METHODS = ("configure",)


def _run_sync(coro):
    """Run coroutine synchronously."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        # Already in async context - create new loop in thread
        import concurrent.futures
        with concurrent.futures.ThreadPoolExecutor() as pool:
            return pool.submit(asyncio.run, coro).result()
    else:
        return asyncio.run(coro)


def _make_sync_method(async_method: Callable) -> Callable:
    """Convert async method to sync method."""

    @functools.wraps(async_method)
    def sync_method(self, *args, **kwargs):
        async_service = getattr(self, "_async_service", None)
        if async_service is None:
            raise RuntimeError("Sync service not properly initialized")

        coro = async_method(async_service, *args, **kwargs)
        return _run_sync(coro)

    return sync_method


def _make_forwarder(method_name: str) -> Callable:
    def forwarder(self, *args, **kwargs):
        return getattr(self._async_service, method_name)(*args, **kwargs)

    forwarder.__name__ = method_name
    return forwarder


def _make_property_forwarder(prop_name: str) -> property:
    @property
    def forwarder(self):
        return getattr(self._async_service, prop_name)

    return forwarder


def create_sync_service(async_class: type) -> type:
    """
    Create sync service class from async service class.

    Args:
        async_class: Async service class with async methods

    Returns:
        New sync service class wrapping async methods

    Example:
        >>> FetchService = create_sync_service(AsyncFetchService)
        >>> FetchService(store).fetch("gs://bucket/key", Path("./out"))
    """
    # Get class name without "Async" prefix
    sync_name = async_class.__name__
    if sync_name.startswith("Async"):
        sync_name = sync_name[5:]

    class_dict: dict[str, Any] = {}

    for name in dir(async_class):
        if name.startswith("_"):
            continue

        attr = getattr(async_class, name)
        if inspect.iscoroutinefunction(attr):
            class_dict[name] = _make_sync_method(attr)
        elif isinstance(attr, property):
            class_dict[name] = _make_property_forwarder(name)

    for name in FORWARDED_METHODS:
        original = getattr(async_class, name, None)
        if original is not None and not inspect.iscoroutinefunction(original):
            class_dict[name] = _make_forwarder(name)

    def sync_init(self, *args, **kwargs):
        self._async_service = async_class(*args, **kwargs)

    class_dict.update(
        {
            "__init__": sync_init,
            "__doc__": async_class.__doc__,
            "__module__": async_class.__module__,
        }
    )

    return type(sync_name, (), class_dict)
