"""
Gallery error taxonomy

All of these are non-fatal. They are raised by the low-level fetch helpers
and absorbed by the cache-aware loaders and the pagination controller.
"""

from typing import Optional


class GalleryError(Exception):
    """Base class for gallery fetch failures."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NetworkError(GalleryError):
    """Connectivity failure, timeout, or non-2xx response."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, url)
        self.status_code = status_code


class DecodeError(GalleryError):
    """Malformed image bytes or malformed JSON payload."""


class MissingResource(GalleryError):
    """Record has no image identifier, so no image URL can be derived."""
