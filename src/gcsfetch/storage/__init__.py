"""Object store backends."""

from gcsfetch.storage.base import ObjectStore
from gcsfetch.storage.gcs import GCSObjectStore

__all__ = ["ObjectStore", "GCSObjectStore"]
