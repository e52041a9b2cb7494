"""
gcsfetch - fetch files and prefix trees from Google Cloud Storage.

Example:
    >>> from pathlib import Path
    >>> from gcsfetch import FetchService
    >>> service = FetchService()
    >>> service.fetch("gs://my-bucket/datasets/2024/", Path("./data"))
"""

from gcsfetch.config import FetchSettings, configure_settings, get_settings
from gcsfetch.exceptions import (
    BackendError,
    FetchCancelledError,
    GCSFetchError,
    InvalidLocationError,
    LocalIOError,
    ObjectNotFoundError,
)
from gcsfetch.models import (
    Location,
    LocationMatch,
    Matched,
    NotMatched,
    ObjectDescriptor,
    TransferMode,
)
from gcsfetch.services.fetch import (
    AsyncFetchService,
    CancelToken,
    FetchResult,
    FetchService,
    copy_stream,
    parse_url,
)
from gcsfetch.storage import GCSObjectStore, ObjectStore

__version__ = "0.1.0"

__all__ = [
    # Services
    "AsyncFetchService",
    "FetchService",
    "FetchResult",
    "CancelToken",
    "copy_stream",
    "parse_url",
    # Models
    "Location",
    "LocationMatch",
    "Matched",
    "NotMatched",
    "ObjectDescriptor",
    "TransferMode",
    # Storage
    "ObjectStore",
    "GCSObjectStore",
    # Config
    "FetchSettings",
    "get_settings",
    "configure_settings",
    # Errors
    "GCSFetchError",
    "InvalidLocationError",
    "BackendError",
    "ObjectNotFoundError",
    "LocalIOError",
    "FetchCancelledError",
]
