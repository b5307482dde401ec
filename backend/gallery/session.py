"""
Gallery Session

Owns the collaborators of one gallery session and maps the consumer
lifecycle onto them:

    on_session_start()      -> PaginationController.load_initial_batch()
    on_scroll_near(index)   -> PaginationController.load_more_if_needed()
    load_image(artwork)     -> ResourceFetcher.load(image_url)
    on_session_end()        -> BoundedImageCache.clear()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from image_cache import BoundedImageCache, ImageFetchConfig, LoadedImage, ResourceFetcher

from .collection_client import CollectionClient, CollectionFetcher
from .config import GalleryConfig
from .models import Artwork
from .pagination import PaginationController

logger = logging.getLogger(__name__)


class GallerySession:
    """
    Explicitly constructed gallery session.

    Usage:
        session = GallerySession.from_config(GalleryConfig())
        await session.on_session_start()
        image = await session.load_image(session.records[0])
        await session.on_session_end()
        await session.close()
    """

    def __init__(
        self,
        cache: BoundedImageCache,
        fetcher: ResourceFetcher,
        controller: PaginationController,
        config: Optional[GalleryConfig] = None,
        collection: Optional[CollectionFetcher] = None,
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.controller = controller
        self.config = config or GalleryConfig()
        self._collection = collection
        self.active = False

    @classmethod
    def from_config(
        cls,
        config: GalleryConfig,
        collection: Optional[CollectionFetcher] = None,
        image_fetcher: Optional[ResourceFetcher] = None,
    ) -> "GallerySession":
        """Build a session and its collaborators from a config."""
        cache = image_fetcher.cache if image_fetcher else BoundedImageCache(
            item_limit=config.cache_item_limit,
            cost_limit=config.cache_cost_limit,
        )
        fetcher = image_fetcher or ResourceFetcher(
            cache,
            ImageFetchConfig(
                timeout=config.request_timeout,
                coalesce_requests=config.coalesce_image_requests,
            ),
        )
        collection = collection or CollectionClient(
            base_url=config.api_base_url,
            timeout=config.request_timeout,
        )
        controller = PaginationController(
            collection,
            initial_load_count=config.initial_load_count,
            batch_size=config.batch_size,
            preload_threshold=config.preload_threshold,
            offset_strategy=config.offset_strategy,
        )
        return cls(cache, fetcher, controller, config=config, collection=collection)

    @property
    def records(self):
        return self.controller.records

    async def on_session_start(self) -> bool:
        """Gallery became visible: load the first batch if nothing is loaded yet."""
        self.active = True
        logger.info("[Gallery] Session started")
        return await self.controller.load_initial_batch()

    async def on_scroll_near(self, index: int) -> bool:
        """
        The consumer rendered item ``index``.

        Returns:
            True if a new page was fetched
        """
        if not self.controller.should_prefetch(index):
            return False
        return await self.controller.load_more_if_needed()

    async def load_image(self, item: Union[Artwork, str]) -> Optional[LoadedImage]:
        """
        Load the image for a record or URL.

        Returns:
            LoadedImage, or None when the record has no image or the fetch failed
        """
        if isinstance(item, Artwork):
            url = item.image_url_for(self.config.iiif_base_url)
            if url is None:
                return None
        else:
            url = item
        return await self.fetcher.load(url)

    async def on_session_end(self) -> int:
        """
        Gallery went away: drop cached images and accumulated records.

        Returns:
            Number of cache entries removed
        """
        self.active = False
        removed = self.cache.clear()
        self.controller.reset()
        logger.info(f"[Gallery] Session ended - {removed} cached images released")
        return removed

    async def close(self):
        """Close the HTTP clients owned by this session's collaborators."""
        await self.fetcher.close()
        close = getattr(self._collection, "close", None)
        if close is not None:
            await close()

    def summary(self) -> Dict[str, Any]:
        state = self.controller.state
        return {
            "active": self.active,
            "phase": self.controller.phase.value,
            "record_count": len(state.records),
            "is_loading": state.is_loading,
            "can_load_more": state.can_load_more,
            "next_offset": state.next_offset,
            "pages_loaded": state.pages_loaded,
            "total_available": state.total_available,
            "last_error": state.last_error,
        }
