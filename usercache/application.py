"""Application factory wired from :class:`~usercache.config.Settings`."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from .cache import UserListCache
from .config import Settings, load_settings
from .database import Database
from .service import create_app

logger = logging.getLogger("usercache.application")


def create_application(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
) -> FastAPI:
    """Create the ASGI application with one shared database and cache."""

    resolved = settings or load_settings()
    db = database or Database(resolved.database_path)
    cache = UserListCache(db)

    app = create_app(database=db, cache=cache)
    app.state.settings = resolved
    logger.info("User directory backed by %s", db.path)
    return app


__all__ = ["create_application"]
