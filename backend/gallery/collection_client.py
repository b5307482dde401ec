"""
Collection API Client

Fetches paged artwork metadata from the Art Institute of Chicago API.

Request:  GET {base_url}/artworks?page=N&limit=M&fields=id,title,image_id
Response: {"data": [...], "pagination": {...}}
"""

import logging
from typing import Optional, Protocol, Sequence

import httpx
from pydantic import ValidationError

from image_cache.errors import DecodeError, NetworkError

from .models import ArtworkResponse, Page

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.artic.edu/api/v1"
DEFAULT_FIELDS = ("id", "title", "image_id")


class CollectionFetcher(Protocol):
    """Anything that can return one page of records."""

    async def fetch_page(self, page: int, limit: int) -> Page:
        ...


class CollectionClient:
    """
    Paged collection fetcher backed by httpx.

    Usage:
        client = CollectionClient()
        page = await client.fetch_page(page=1, limit=10)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        fields: Sequence[str] = DEFAULT_FIELDS,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.fields = tuple(fields)

        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )

    async def close(self):
        """Close HTTP client if this client created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def fetch_page(self, page: int, limit: int) -> Page:
        """
        Fetch one page of artworks.

        Args:
            page: 1-based page index
            limit: Page size

        Raises:
            NetworkError: connectivity failure, timeout, or non-2xx status
            DecodeError: body is not valid JSON for the expected schema
        """
        url = f"{self.base_url}/artworks"
        params = {
            "page": page,
            "limit": limit,
            "fields": ",".join(self.fields),
        }

        logger.info(f"[Collection] Requesting page {page} (limit={limit})")

        try:
            response = await self.http_client.get(url, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise NetworkError("Collection request timeout", url) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise NetworkError(f"HTTP {status}", url, status_code=status) from e
        except httpx.InvalidURL as e:
            raise NetworkError(f"Invalid URL: {e}", url) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request error: {e}", url) from e

        try:
            payload = ArtworkResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(f"Error decoding response: {e.error_count()} validation error(s)", url) from e

        return Page.from_response(payload)
