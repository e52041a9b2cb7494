"""
Object listing models.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TransferMode(str, Enum):
    """How a location is materialized locally."""

    FILE = "file"
    DIRECTORY = "directory"


class ObjectDescriptor(BaseModel):
    """One object yielded by a prefix listing."""

    model_config = ConfigDict(frozen=True)

    key: str
    size: int | None = None

    @property
    def is_placeholder(self) -> bool:
        """Zero-content "folder" marker objects end with a slash."""
        return self.key.endswith("/")
