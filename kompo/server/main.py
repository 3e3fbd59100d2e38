"""
Kompo FastAPI application.

Entry point for a standalone server; host applications may include
``kompo.server.routes.router`` in their own app instead.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from kompo.config import settings
from kompo.server import db
from kompo.server import routes as kompo_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup logic:
    - Configure logging
    - Create tables of the imported records
    """
    logging.basicConfig(level=settings.LOG_LEVEL)
    db.init_db()
    logging.getLogger(__name__).info("main: database initialized")

    yield


app = FastAPI(
    title="Kompo",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

app.include_router(kompo_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
