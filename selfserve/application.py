"""Application factory that serves both the JSON API and the account pages."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from .api import build_auth_dependency, register_api_routes, register_error_handlers
from .config import Settings, load_settings
from .credentials import CredentialService
from .database import Database
from .passwords import PasswordHasher
from .profiles import ProfileService
from .sessions import SessionManager
from .web import register_ui_routes

logger = logging.getLogger("selfserve.application")


def create_application(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    hasher: Optional[PasswordHasher] = None,
    include_api: bool = True,
    include_web: bool = True,
) -> FastAPI:
    """Create the combined ASGI application."""

    settings = settings or load_settings()

    db = database or Database(settings.database_path)
    db.initialize()

    password_hasher = hasher or PasswordHasher(rounds=settings.bcrypt_rounds)
    profiles = ProfileService(db, password_hasher)
    credentials = CredentialService(db, password_hasher, min_length=settings.password_min_length)
    session_manager = SessionManager(ttl=settings.session_ttl)

    app = FastAPI(
        title="Account Self-Service",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.database = db
    app.state.profiles = profiles
    app.state.credentials = credentials
    app.state.session_manager = session_manager

    register_error_handlers(app)

    if include_api:
        register_api_routes(
            app,
            profiles=profiles,
            credentials=credentials,
            current_user=build_auth_dependency(credentials, session_manager),
        )

    if include_web:
        register_ui_routes(
            app,
            profiles=profiles,
            credentials=credentials,
            session_manager=session_manager,
            secure_cookies=settings.secure_cookies,
        )

    logger.debug("Account application created with database %s", db.path)
    return app


__all__ = ["create_application"]
