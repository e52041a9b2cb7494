"""
Location models.

A parsed URL is either Matched (it addresses this backend) or NotMatched
(it belongs to some other backend and should be passed along untouched).
"""

from __future__ import annotations

from typing import Literal, Union
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

GCS_API_BASE = "https://www.googleapis.com/storage/v1"


class Location(BaseModel):
    """Bucket + key (or key prefix) inside the object store."""

    model_config = ConfigDict(frozen=True)

    container: str = Field(min_length=1, description="Bucket name")
    key: str = Field(default="", description="Object key or key prefix")

    def to_url(self) -> str:
        """Serialize back to the canonical JSON API URL (key percent-encoded)."""
        return f"{GCS_API_BASE}/{self.container}/{quote(self.key, safe='/')}"

    def __str__(self) -> str:
        return f"gs://{self.container}/{self.key}"


class Matched(BaseModel):
    """URL addresses this backend."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["matched"] = "matched"
    location: Location


class NotMatched(BaseModel):
    """URL belongs to a different backend."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["not_matched"] = "not_matched"
    url: str


LocationMatch = Union[Matched, NotMatched]
