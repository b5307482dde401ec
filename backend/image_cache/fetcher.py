"""
Resource Fetcher

Cache-aware image loading:
- Returns the cached image when present (no network call)
- Otherwise downloads the URL once, decodes it with Pillow, caches it
- Failures (network or decode) yield None and never touch the cache
- Optional coalescing of concurrent loads for the same URL
"""

import asyncio
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, Optional

import httpx
from PIL import Image

from .bounded_cache import BoundedImageCache, estimate_cost
from .errors import DecodeError, GalleryError, NetworkError

logger = logging.getLogger(__name__)


@dataclass
class ImageFetchConfig:
    """Configuration for image downloads."""
    timeout: float = 30.0               # Download timeout in seconds
    coalesce_requests: bool = False     # Share one download between concurrent loads of a URL
    headers: Dict[str, str] = field(default_factory=lambda: {
        "User-Agent": "artic-gallery/0.1 (+https://api.artic.edu)",
        "Accept": "image/avif,image/webp,image/*,*/*;q=0.8",
    })


@dataclass
class LoadedImage:
    """A downloaded and decoded image, as stored in the cache."""
    url: str
    data: bytes
    content_type: str
    width: int
    height: int
    image: Any = field(default=None, repr=False)

    @property
    def cost(self) -> int:
        return estimate_cost(self)

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class ResourceFetcher:
    """
    Loads images through a BoundedImageCache.

    Usage:
        fetcher = ResourceFetcher(cache)
        image = await fetcher.load(url)   # None if unavailable
    """

    def __init__(
        self,
        cache: BoundedImageCache,
        config: Optional[ImageFetchConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.cache = cache
        self.config = config or ImageFetchConfig()

        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=self.config.timeout,
            follow_redirects=True,
            headers=self.config.headers,
        )

        # url -> shared download task (only used when coalescing)
        self._in_flight: Dict[str, "asyncio.Task[LoadedImage]"] = {}

        self.stats = {
            "network_fetches": 0,
            "failures": 0,
            "coalesced": 0,
        }

    async def close(self):
        """Close HTTP client if this fetcher created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def load(self, url: str) -> Optional[LoadedImage]:
        """
        Return the image for ``url`` from cache, or download and cache it.

        Returns:
            LoadedImage, or None when the image is unavailable
        """
        cached = self.cache.get(url)
        if cached is not None:
            logger.debug(f"[ImageFetcher] Cache hit: {url[:60]}...")
            return cached

        try:
            if self.config.coalesce_requests:
                return await self._load_shared(url)
            return await self._fetch_and_store(url)
        except GalleryError as e:
            self.stats["failures"] += 1
            logger.warning(f"[ImageFetcher] Image unavailable: {url[:60]}... - {e}")
            return None

    async def fetch(self, url: str) -> LoadedImage:
        """
        Download and decode a single image without consulting the cache.

        Raises:
            NetworkError: connectivity failure, timeout, or non-2xx status
            DecodeError: body is empty or not a decodable image
        """
        self.stats["network_fetches"] += 1
        logger.info(f"[ImageFetcher] Fetching: {url[:80]}...")

        try:
            response = await self.http_client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise NetworkError("Image fetch timeout", url) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise NetworkError(f"HTTP {status}", url, status_code=status) from e
        except httpx.InvalidURL as e:
            raise NetworkError(f"Invalid URL: {e}", url) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Fetch error: {e}", url) from e

        data = response.content
        if not data:
            raise DecodeError("Empty image body", url)

        header_type = response.headers.get("content-type", "").split(";")[0].strip().lower()

        # Pillow decoding is CPU bound, keep it off the event loop
        loaded = await asyncio.to_thread(self._decode, url, data, header_type)

        logger.info(
            f"[ImageFetcher] Success: {url[:40]}... "
            f"({len(data) // 1024}KB, {loaded.width}x{loaded.height})"
        )
        return loaded

    async def _fetch_and_store(self, url: str) -> LoadedImage:
        loaded = await self.fetch(url)
        self.cache.set(url, loaded)
        return loaded

    async def _load_shared(self, url: str) -> LoadedImage:
        task = self._in_flight.get(url)
        if task is not None:
            self.stats["coalesced"] += 1
            logger.debug(f"[ImageFetcher] Joining in-flight fetch: {url[:60]}...")
            return await asyncio.shield(task)

        task = asyncio.ensure_future(self._fetch_and_store(url))
        self._in_flight[url] = task

        def _forget(done: "asyncio.Task[LoadedImage]") -> None:
            if self._in_flight.get(url) is done:
                del self._in_flight[url]
            # Mark the failure retrieved even if every awaiter was cancelled
            if not done.cancelled():
                done.exception()

        task.add_done_callback(_forget)
        return await asyncio.shield(task)

    @staticmethod
    def _decode(url: str, data: bytes, header_type: str) -> LoadedImage:
        try:
            img = Image.open(BytesIO(data))
            img.load()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeError(f"Undecodable image data: {e}", url) from e

        content_type = Image.MIME.get(img.format or "", "") or header_type or "application/octet-stream"

        return LoadedImage(
            url=url,
            data=data,
            content_type=content_type,
            width=img.width,
            height=img.height,
            image=img,
        )
