"""
Error types raised while generating candidate banners.

Every error carries the HTTP status the API surfaces should answer with.
"""

from typing import Optional


class CollageError(RuntimeError):
    """Base class for banner generation failures."""

    status_code = 500


class InvalidParameter(CollageError):
    """A request field is present but unusable."""

    status_code = 400


class MissingParameter(InvalidParameter):
    pass


class InvalidColorFormat(CollageError):
    status_code = 400


class NoCandidatesFound(CollageError):
    status_code = 400


class DataFetchError(CollageError):
    """A data store query failed upstream."""


class CategoryLookupError(DataFetchError):
    """The category row could not be read or does not exist."""


class AssetFetchError(CollageError):
    """A remote asset answered with a non-success status or could not be reached."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status = status
        if status is not None:
            message = f"Failed to fetch {url} -> {status} {reason}".rstrip()
        else:
            message = f"Failed to fetch {url}: {reason}"
        super().__init__(message)


class AssetDecodeError(CollageError):
    pass


class PublishError(CollageError):
    """Uploading a banner to storage was rejected."""
