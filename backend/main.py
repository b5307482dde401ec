"""
Gallery backend application

Run with an ASGI server, e.g.:
    cd backend
    uvicorn main:app --reload
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gallery import router as gallery_router
from gallery.routes_fastapi import close_session

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if await close_session():
        logger.info("Gallery session closed")


app = FastAPI(title="Artwork Gallery", lifespan=lifespan)
app.include_router(gallery_router)
