"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from .middleware import register_error_handlers
from .routes import graph, index, notes
from ..services.workspace import get_workspace_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load both concept indices on startup; let in-flight saves finish on shutdown."""
    logger.info("Running startup: loading concept indices...")
    service = get_workspace_service()
    try:
        await service.load()
        logger.info(
            "Startup complete: concept indices loaded",
            extra={"workspace": service.workspace.slug},
        )
    except Exception as exc:
        logger.exception("Startup failed: %s", exc)
        logger.error("App starting with indices unloaded; they load on first use")
    yield
    await service.close()


app = FastAPI(
    title="Concept Notes API",
    description="Interlinked notes with public and private scopes on remote storage",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(notes.router, tags=["notes"])
app.include_router(graph.router, tags=["graph"])
app.include_router(index.router, tags=["index"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


__all__ = ["app"]
