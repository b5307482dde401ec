"""
Gallery Module

Paginated artwork gallery over the Art Institute of Chicago collection API.

Features:
- Sequential page fetches with a single outstanding request
- Filtering of records without an image identifier
- Session lifecycle wired to the in-memory image cache
- FastAPI router exposing the lifecycle
"""

from image_cache.errors import DecodeError, GalleryError, MissingResource, NetworkError

from .collection_client import CollectionClient, CollectionFetcher
from .config import GalleryConfig
from .models import Artwork, ArtworkResponse, Page, Pagination, build_image_url, page_index_for
from .pagination import GalleryState, LoadPhase, OffsetStrategy, PaginationController
from .routes_fastapi import router
from .session import GallerySession

__all__ = [
    "router",
    "Artwork",
    "ArtworkResponse",
    "Pagination",
    "Page",
    "build_image_url",
    "page_index_for",
    "CollectionClient",
    "CollectionFetcher",
    "GalleryConfig",
    "GalleryState",
    "LoadPhase",
    "OffsetStrategy",
    "PaginationController",
    "GallerySession",
    "GalleryError",
    "NetworkError",
    "DecodeError",
    "MissingResource",
]
