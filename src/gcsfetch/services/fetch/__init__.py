"""
Fetch service for gcsfetch.

Materializes a storage location on local disk as a single file or as a
directory tree, depending on what the location's key matches.

Features:
- File/directory detection from a two-result prefix listing
- Replace-not-merge directory fetch preserving relative structure
- Fail-fast on the first object error
- Cancellation and deadlines checked between chunks
"""

from gcsfetch.services.fetch._aio import AsyncFetchService, object_destination
from gcsfetch.services.fetch._cancel import CancelToken
from gcsfetch.services.fetch._copy import copy_stream
from gcsfetch.services.fetch._location import parse_url, resolve_location
from gcsfetch.services.fetch._models import FetchResult, TransferStats
from gcsfetch.services.fetch._sync import FetchService

__all__ = [
    "AsyncFetchService",
    "FetchService",
    "CancelToken",
    "FetchResult",
    "TransferStats",
    "copy_stream",
    "object_destination",
    "parse_url",
    "resolve_location",
]
