"""
Image Cache Module
图片缓存模块

In-memory image cache and cache-aware image loading for the gallery.

Features:
- Item-count and byte-cost limits with LRU eviction
- Thread-safe cache counters
- Single network fetch per URL while cached
- Optional coalescing of concurrent loads
"""

from .bounded_cache import BoundedImageCache, CacheEntry, estimate_cost
from .errors import DecodeError, GalleryError, MissingResource, NetworkError
from .fetcher import ImageFetchConfig, LoadedImage, ResourceFetcher

__all__ = [
    "BoundedImageCache",
    "CacheEntry",
    "estimate_cost",
    "ResourceFetcher",
    "ImageFetchConfig",
    "LoadedImage",
    "GalleryError",
    "NetworkError",
    "DecodeError",
    "MissingResource",
]
