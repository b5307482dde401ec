"""
Gallery API Routes

Provides endpoints for:
- Driving the gallery session lifecycle (start, scroll, end)
- Listing accumulated artworks
- Serving cached or freshly fetched images
- Cache statistics
"""

import logging
from typing import Optional
from urllib.parse import unquote, urlparse

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from .config import GalleryConfig
from .session import GallerySession

logger = logging.getLogger(__name__)

# ============================================
# Session
# ============================================

_session: Optional[GallerySession] = None


def get_session() -> GallerySession:
    """Module-level session, built lazily from GALLERY_* settings."""
    global _session
    if _session is None:
        _session = GallerySession.from_config(GalleryConfig.from_env())
    return _session


async def close_session() -> bool:
    """
    End and close the module-level session if one was ever built.

    Returns:
        True if a session was closed
    """
    global _session
    if _session is None:
        return False
    session, _session = _session, None
    await session.on_session_end()
    await session.close()
    return True


# ============================================
# Router
# ============================================

router = APIRouter(prefix="/api/gallery", tags=["Gallery"])


# ============================================
# Endpoints
# ============================================

@router.post("/session/start")
async def start_session(session: GallerySession = Depends(get_session)):
    """
    Start the gallery session and load the first batch of artworks.

    Calling it again while records are loaded does not refetch.
    """
    loaded = await session.on_session_start()
    return JSONResponse(content={
        "success": True,
        "loaded": loaded,
        "state": session.summary(),
    })


@router.post("/session/scroll")
async def scroll_near(
    index: int = Query(..., ge=0, description="Index of the item the consumer just rendered"),
    session: GallerySession = Depends(get_session),
):
    """
    Report the rendered index; loads the next page once it is within the
    preload threshold of the end.
    """
    loaded = await session.on_scroll_near(index)
    return JSONResponse(content={
        "success": True,
        "loaded": loaded,
        "state": session.summary(),
    })


@router.post("/session/end")
async def end_session(session: GallerySession = Depends(get_session)):
    """End the gallery session and release cached images."""
    removed = await session.on_session_end()
    return JSONResponse(content={
        "success": True,
        "removed_entries": removed,
    })


@router.get("/artworks")
async def list_artworks(session: GallerySession = Depends(get_session)):
    """Accumulated artworks with their image URLs."""
    iiif_base = session.config.iiif_base_url
    items = [
        {
            "id": artwork.id,
            "title": artwork.title,
            "image_id": artwork.image_id,
            "image_url": artwork.image_url_for(iiif_base),
        }
        for artwork in session.records
    ]
    return JSONResponse(content={
        "success": True,
        "count": len(items),
        "items": items,
        "state": session.summary(),
    })


@router.get("/image")
async def get_image(
    url: str = Query(..., description="URL of the image to load"),
    session: GallerySession = Depends(get_session),
):
    """
    Return an image from the session cache, fetching it on a miss.

    Example:
        GET /api/gallery/image?url=https://www.artic.edu/iiif/2/<id>/full/843,/0/default.jpg
    """
    url = unquote(url)

    try:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError("Invalid URL scheme")
        if not parsed.netloc:
            raise ValueError("Invalid URL host")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid URL: {e}")

    hit = url in session.cache
    image = await session.load_image(url)
    if image is None:
        raise HTTPException(status_code=404, detail="Image unavailable")

    return Response(
        content=image.data,
        media_type=image.content_type,
        headers={
            "X-Cache": "HIT" if hit else "MISS",
            "X-Image-Size": f"{image.width}x{image.height}",
        },
    )


@router.get("/stats")
async def get_stats(session: GallerySession = Depends(get_session)):
    """Cache and fetcher statistics."""
    return JSONResponse(content={
        "success": True,
        "cache": session.cache.get_stats(),
        "fetcher": dict(session.fetcher.stats),
        "state": session.summary(),
    })


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return JSONResponse(content={
        "status": "healthy",
        "service": "gallery",
    })
