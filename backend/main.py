"""
Component Studio FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend import db
from backend.config import settings
from backend.errors import PersistenceError
from backend.routes import sessions as session_routes

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Initialize database pool
    - Close database pool on shutdown
    """
    # Startup
    await db.init_pool()
    logger.info("Database pool initialized")

    yield

    # Shutdown
    await db.close_pool()
    logger.info("Database pool closed")


app = FastAPI(
    title="Component Studio",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(session_routes.router)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Storage failures are fatal for the request; nothing partial was written."""
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": exc.message},
    )


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {
        "status": "ok",
        "database": db.pool is not None,
        "ai_provider": settings.AI_PROVIDER,
    }
