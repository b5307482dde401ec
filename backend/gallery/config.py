"""
Gallery Configuration

Recognised options (environment variable in brackets):
- initial_load_count   images requested on first load          [GALLERY_INITIAL_LOAD_COUNT]
- batch_size           images per subsequent page               [GALLERY_BATCH_SIZE]
- preload_threshold    items from the end that trigger prefetch [GALLERY_PRELOAD_THRESHOLD]
- cache_item_limit     max cached images                        [GALLERY_CACHE_ITEM_LIMIT]
- cache_cost_limit     max total cached bytes                   [GALLERY_CACHE_COST_LIMIT_MB]
"""

import os
from dataclasses import dataclass

from image_cache.bounded_cache import DEFAULT_COST_LIMIT, DEFAULT_ITEM_LIMIT

from .collection_client import DEFAULT_API_BASE_URL
from .models import DEFAULT_IIIF_BASE_URL
from .pagination import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_INITIAL_LOAD_COUNT,
    DEFAULT_PRELOAD_THRESHOLD,
    OffsetStrategy,
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


@dataclass
class GalleryConfig:
    """Configuration for one gallery session."""
    # Pagination
    initial_load_count: int = DEFAULT_INITIAL_LOAD_COUNT
    batch_size: int = DEFAULT_BATCH_SIZE
    preload_threshold: int = DEFAULT_PRELOAD_THRESHOLD
    offset_strategy: str = OffsetStrategy.FILTERED.value

    # Cache
    cache_item_limit: int = DEFAULT_ITEM_LIMIT
    cache_cost_limit: int = DEFAULT_COST_LIMIT

    # Network
    api_base_url: str = DEFAULT_API_BASE_URL
    iiif_base_url: str = DEFAULT_IIIF_BASE_URL
    request_timeout: float = 30.0
    coalesce_image_requests: bool = False

    def __post_init__(self):
        if self.initial_load_count <= 0:
            raise ValueError("initial_load_count must be positive")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if self.preload_threshold < 0:
            raise ValueError("preload_threshold must not be negative")
        if self.cache_item_limit <= 0:
            raise ValueError("cache_item_limit must be positive")
        if self.cache_cost_limit <= 0:
            raise ValueError("cache_cost_limit must be positive")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        # Raises ValueError for unknown strategies
        OffsetStrategy(self.offset_strategy)

    @classmethod
    def from_env(cls) -> "GalleryConfig":
        """Build a config from GALLERY_* environment variables."""
        return cls(
            initial_load_count=int(os.getenv("GALLERY_INITIAL_LOAD_COUNT", str(DEFAULT_INITIAL_LOAD_COUNT))),
            batch_size=int(os.getenv("GALLERY_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))),
            preload_threshold=int(os.getenv("GALLERY_PRELOAD_THRESHOLD", str(DEFAULT_PRELOAD_THRESHOLD))),
            offset_strategy=os.getenv("GALLERY_OFFSET_STRATEGY", OffsetStrategy.FILTERED.value),
            cache_item_limit=int(os.getenv("GALLERY_CACHE_ITEM_LIMIT", str(DEFAULT_ITEM_LIMIT))),
            cache_cost_limit=int(os.getenv("GALLERY_CACHE_COST_LIMIT_MB", "100")) * 1024 * 1024,
            api_base_url=os.getenv("GALLERY_API_BASE_URL", DEFAULT_API_BASE_URL),
            iiif_base_url=os.getenv("GALLERY_IIIF_BASE_URL", DEFAULT_IIIF_BASE_URL),
            request_timeout=float(os.getenv("GALLERY_REQUEST_TIMEOUT", "30")),
            coalesce_image_requests=_env_bool("GALLERY_COALESCE_IMAGE_REQUESTS", False),
        )
