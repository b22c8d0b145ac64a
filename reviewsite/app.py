"""FastAPI application for the school review site."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .config import settings
from .database import Database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = Database.from_settings()
    if db is None:
        logger.warning("%s; overrides disabled and write endpoints will fail", settings.db_env_error)
    elif db.is_sqlite:
        # Auto-create tables for SQLite (local dev); PostgreSQL uses Alembic migrations
        await db.create_tables()
    app.state.db = db
    try:
        yield
    finally:
        if db is not None:
            await db.dispose()


app = FastAPI(title=settings.app_title, lifespan=lifespan)
app.state.db = None
app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")

from .routers import health, pages, reviews, track, tracker, webhooks  # noqa: E402

app.include_router(pages.router)
app.include_router(reviews.router)
app.include_router(track.router)
app.include_router(tracker.router)
app.include_router(webhooks.router)
app.include_router(health.router)
