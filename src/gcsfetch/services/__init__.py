"""gcsfetch services."""

from gcsfetch.services.base import BaseService
from gcsfetch.services.fetch import AsyncFetchService, FetchService

__all__ = ["BaseService", "AsyncFetchService", "FetchService"]
