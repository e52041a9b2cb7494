"""
Models for fetch service.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from gcsfetch.models.objects import TransferMode


class TransferStats(BaseModel):
    """Statistics from a single object transfer."""

    bytes_transferred: int = 0
    chunks_count: int = 0


class FetchResult(BaseModel):
    """Result of a fetch operation."""

    model_config = {"arbitrary_types_allowed": True}

    mode: TransferMode
    local_path: Path
    size: int = 0
    objects_count: int = 0
    elapsed: float = 0.0
    files: list[Path] = Field(default_factory=list)

    @property
    def speed_mbps(self) -> float:
        """Transfer speed in MB/s."""
        if self.elapsed <= 0:
            return 0.0
        return (self.size / 1024 / 1024) / self.elapsed

    def summary(self) -> str:
        """Human-readable summary."""
        size_mb = self.size / 1024 / 1024
        lines = [
            f"Mode: {self.mode.value}",
            f"Path: {self.local_path}",
            f"Size: {size_mb:.1f} MB ({self.size:,} bytes)",
            f"Time: {self.elapsed:.1f}s @ {self.speed_mbps:.1f} MB/s",
        ]
        if self.mode is TransferMode.DIRECTORY:
            lines.append(f"Objects: {self.objects_count}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"FetchResult({self.mode.value}, {self.objects_count} objects, "
            f"{self.size:,} bytes, {self.elapsed:.1f}s)"
        )
