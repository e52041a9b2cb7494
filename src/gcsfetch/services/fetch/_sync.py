"""
Synchronous fetch service.

Generated from AsyncFetchService: every coroutine method gets a blocking
counterpart that runs it with asyncio.run().
"""

from __future__ import annotations

from gcsfetch.services._sync_wrapper import create_sync_service
from gcsfetch.services.fetch._aio import AsyncFetchService

FetchService = create_sync_service(AsyncFetchService)
FetchService.__doc__ = """
    Synchronous fetch service.

    Example:
        >>> service = FetchService(GCSObjectStore())
        >>> result = service.fetch("gs://my-bucket/models/v3/", Path("./models"))
        >>> print(result.summary())
    """
