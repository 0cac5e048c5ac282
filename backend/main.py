"""
Popup builder FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.config import settings
from backend.routes import popups as popup_routes
from backend.services.llm_provider import describe_llm

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Logs which LLM mode the server runs in. Nothing to open or close:
    the kernel is pure and LLM clients are created per request.
    """
    logger.info("Popup builder starting (environment=%s, llm=%s)", settings.ENVIRONMENT, describe_llm())
    yield
    logger.info("Popup builder stopped")


app = FastAPI(
    title="Popup Builder",
    lifespan=lifespan,
)

# Register routes
app.include_router(popup_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok", "llm": describe_llm()}
