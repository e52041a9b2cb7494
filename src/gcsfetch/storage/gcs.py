"""
Google Cloud Storage object store.

Uses Application Default Credentials. One client is created lazily per
store instance and reused for every call made through it.
"""

from __future__ import annotations

from typing import BinaryIO, Iterator

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from gcsfetch.exceptions import BackendError, ObjectNotFoundError
from gcsfetch.logging import get_logger
from gcsfetch.models.objects import ObjectDescriptor

logger = get_logger(__name__)


class GCSObjectStore:
    """
    ObjectStore backed by google-cloud-storage.

    Example:
        >>> store = GCSObjectStore(project="my-project")
        >>> for obj in store.list_objects("my-bucket", "models/"):
        ...     print(obj.key)
    """

    def __init__(
        self,
        client: storage.Client | None = None,
        project: str | None = None,
    ) -> None:
        self._client = client
        self._project = project

    @classmethod
    def from_settings(cls) -> GCSObjectStore:
        """Create a store configured from gcsfetch settings."""
        from gcsfetch.config import get_settings

        return cls(project=get_settings().project)

    @property
    def client(self) -> storage.Client:
        """Storage client (created on first use)."""
        if self._client is None:
            logger.debug(f"Creating storage client (project={self._project})")
            self._client = storage.Client(project=self._project)
        return self._client

    def open_read(self, container: str, key: str) -> BinaryIO:
        try:
            blob = self.client.bucket(container).get_blob(key)
        except gcs_exceptions.NotFound as e:
            # Bucket itself is missing
            raise ObjectNotFoundError(container, key, cause=e) from e
        except gcs_exceptions.GoogleAPIError as e:
            raise BackendError(
                f"failed to open object: {e}",
                stage="read",
                container=container,
                key=key,
                cause=e,
            ) from e

        if blob is None:
            raise ObjectNotFoundError(container, key)

        return blob.open("rb")

    def list_objects(
        self,
        container: str,
        prefix: str,
        limit: int | None = None,
    ) -> Iterator[ObjectDescriptor]:
        try:
            blobs = self.client.list_blobs(container, prefix=prefix, max_results=limit)
            for blob in blobs:
                yield ObjectDescriptor(key=blob.name, size=blob.size)
        except gcs_exceptions.GoogleAPIError as e:
            raise BackendError(
                f"failed to list objects: {e}",
                stage="list",
                container=container,
                key=prefix,
                cause=e,
            ) from e
