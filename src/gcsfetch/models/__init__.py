"""gcsfetch models."""

from gcsfetch.models.location import (
    GCS_API_BASE,
    Location,
    LocationMatch,
    Matched,
    NotMatched,
)
from gcsfetch.models.objects import ObjectDescriptor, TransferMode

__all__ = [
    # Location
    "GCS_API_BASE",
    "Location",
    "LocationMatch",
    "Matched",
    "NotMatched",
    # Objects
    "ObjectDescriptor",
    "TransferMode",
]
