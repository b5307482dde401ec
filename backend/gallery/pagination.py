"""
Pagination Controller

Maintains the ordered, growing list of gallery records fetched page by page.

State machine:
    IDLE -> LOADING_INITIAL -> IDLE | EXHAUSTED
    IDLE -> LOADING_MORE    -> IDLE | EXHAUSTED

Only one page request is outstanding at a time. Calls made while a request
is in flight, or after the collection is exhausted, are no-ops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from image_cache.errors import GalleryError

from .collection_client import CollectionFetcher
from .models import Artwork, page_index_for

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_LOAD_COUNT = 10
DEFAULT_BATCH_SIZE = 10
DEFAULT_PRELOAD_THRESHOLD = 4


class LoadPhase(str, Enum):
    """Pagination state"""
    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    LOADING_MORE = "loading_more"
    EXHAUSTED = "exhausted"


class OffsetStrategy(str, Enum):
    """How next_offset advances after a page arrives"""
    FILTERED = "filtered"    # by the number of records kept after filtering
    SERVER = "server"        # by the raw page size the server returned


@dataclass
class GalleryState:
    """
    Accumulated gallery records and load flags
    """
    records: List[Artwork] = field(default_factory=list)
    is_loading: bool = False
    can_load_more: bool = True
    next_offset: int = 0

    # Diagnostics
    pages_loaded: int = 0
    total_available: Optional[int] = None
    last_error: Optional[str] = None


class PaginationController:
    """
    Coordinates sequential page fetches for the gallery.

    All state mutation happens on the event loop task that awaits the
    fetch, so GalleryState needs no locking.
    """

    def __init__(
        self,
        fetcher: CollectionFetcher,
        initial_load_count: int = DEFAULT_INITIAL_LOAD_COUNT,
        batch_size: int = DEFAULT_BATCH_SIZE,
        preload_threshold: int = DEFAULT_PRELOAD_THRESHOLD,
        offset_strategy: OffsetStrategy = OffsetStrategy.FILTERED,
    ):
        if initial_load_count <= 0 or batch_size <= 0:
            raise ValueError("initial_load_count and batch_size must be positive")
        if preload_threshold < 0:
            raise ValueError("preload_threshold must not be negative")

        self.fetcher = fetcher
        self.initial_load_count = initial_load_count
        self.batch_size = batch_size
        self.preload_threshold = preload_threshold
        self.offset_strategy = OffsetStrategy(offset_strategy)

        self.state = GalleryState()
        self._phase = LoadPhase.IDLE

        if initial_load_count != batch_size and self.offset_strategy is OffsetStrategy.FILTERED:
            logger.warning(
                f"[Gallery] initial_load_count ({initial_load_count}) != batch_size ({batch_size}); "
                f"derived page indexes may skip or repeat records"
            )

    # ============================================
    # Read-only views
    # ============================================

    @property
    def phase(self) -> LoadPhase:
        return self._phase

    @property
    def records(self) -> List[Artwork]:
        return self.state.records

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def can_load_more(self) -> bool:
        return self.state.can_load_more

    def should_prefetch(self, index: int) -> bool:
        """Consumer trigger rule: the rendered index is within the preload threshold of the end."""
        total = len(self.state.records)
        return total > 0 and index >= total - self.preload_threshold

    # ============================================
    # Operations
    # ============================================

    async def load_initial_batch(self) -> bool:
        """
        Load the first page, unless records are already present.

        Returns:
            True if a fetch was performed and succeeded
        """
        if self.state.records or self.state.is_loading:
            return False
        return await self._fetch(self.initial_load_count, LoadPhase.LOADING_INITIAL)

    async def load_more_if_needed(self) -> bool:
        """
        Load the next page unless a fetch is outstanding or nothing is left.

        Safe to call redundantly from many scroll events.

        Returns:
            True if a fetch was performed and succeeded
        """
        if self.state.is_loading or not self.state.can_load_more:
            return False
        return await self._fetch(self.batch_size, LoadPhase.LOADING_MORE)

    def reset(self) -> None:
        """Discard all accumulated state (gallery session ended)."""
        self.state = GalleryState()
        self._phase = LoadPhase.IDLE

    async def _fetch(self, count: int, phase: LoadPhase) -> bool:
        # Guard must be set before the first await so concurrent callers see it
        self.state.is_loading = True
        self._phase = phase
        state = self.state

        page_index = page_index_for(state.next_offset, count)
        logger.info(f"[Gallery] Loading {count} images (page {page_index})")

        try:
            page = await self.fetcher.fetch_page(page_index, count)
        except GalleryError as e:
            state.last_error = str(e)
            logger.warning(f"[Gallery] Error loading data: {e}")
            self._finish(state)
            return False

        if state is not self.state:
            # Session was reset while the request was in flight
            logger.debug("[Gallery] Discarding page for a reset session")
            return False

        new_records = [record for record in page.records if record.has_image]
        state.records.extend(new_records)

        if self.offset_strategy is OffsetStrategy.SERVER:
            state.next_offset += len(page.records)
        else:
            state.next_offset += len(new_records)

        state.can_load_more = len(new_records) > 0
        state.pages_loaded += 1
        state.total_available = page.total_count
        state.last_error = None

        dropped = len(page.records) - len(new_records)
        logger.info(
            f"[Gallery] Loaded {len(new_records)} new images "
            f"({dropped} without image). Total: {len(state.records)}"
        )

        self._finish(state)
        return True

    def _finish(self, state: GalleryState) -> None:
        state.is_loading = False
        if state is not self.state:
            return
        self._phase = LoadPhase.IDLE if state.can_load_more else LoadPhase.EXHAUSTED
