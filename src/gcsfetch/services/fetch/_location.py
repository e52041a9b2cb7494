"""
URL to location parsing.

Accepted forms:
    https://www.googleapis.com/storage/v1/<bucket>/<key...>
    gs://<bucket>/<key...>

Anything else is NotMatched so a dispatcher can hand it to another backend.
"""

from __future__ import annotations

from urllib.parse import unquote, urlparse

from gcsfetch.exceptions import InvalidLocationError
from gcsfetch.models.location import Location, LocationMatch, Matched, NotMatched

GCS_API_DOMAIN = "googleapis.com"
GCS_SCHEME = "gs"


def parse_url(url: str) -> LocationMatch:
    """
    Parse a URL into a bucket/key location.

    Args:
        url: Storage URL.

    Returns:
        Matched(location) for storage URLs, NotMatched(url) for foreign ones.

    Raises:
        InvalidLocationError: URL targets the storage API but is malformed.

    Example:
        >>> parse_url("https://www.googleapis.com/storage/v1/bucket/a/b.txt")
        Matched(kind='matched', location=Location(container='bucket', key='a/b.txt'))
        >>> parse_url("https://example.com/file.zip")
        NotMatched(kind='not_matched', url='https://example.com/file.zip')
    """
    parsed = urlparse(url)

    if parsed.scheme == GCS_SCHEME:
        bucket = parsed.netloc
        if not bucket:
            raise InvalidLocationError(url, "missing bucket")
        path = unquote(parsed.path)
        key = path[1:] if path.startswith("/") else path
        return Matched(location=Location(container=bucket, key=key))

    host = parsed.hostname or ""
    if GCS_API_DOMAIN not in host:
        return NotMatched(url=url)

    if len(host.split(".")) != 3:
        raise InvalidLocationError(url, "unexpected storage host")

    # "/storage/v1/<bucket>/<key>" -> ["", "storage", "v1", bucket, key]
    parts = unquote(parsed.path).split("/", 4)
    if len(parts) != 5:
        raise InvalidLocationError(url)

    bucket, key = parts[3], parts[4]
    if not bucket:
        raise InvalidLocationError(url, "missing bucket")

    return Matched(location=Location(container=bucket, key=key))


def resolve_location(target: str | Location) -> Location:
    """Accept either a URL or an already parsed Location."""
    if isinstance(target, Location):
        return target
    match = parse_url(target)
    if isinstance(match, NotMatched):
        raise InvalidLocationError(target, "not a Google Cloud Storage URL")
    return match.location
