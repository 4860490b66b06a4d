"""HTTP API for creating and listing users."""

from __future__ import annotations

import logging
import os
from typing import Dict, List

from fastapi import FastAPI, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from .cache import UserListCache
from .database import Database, StorageError, UserStoreError, resolve_database_path
from .models import DEMO_USER, User
from .users import UserService

logger = logging.getLogger("usercache.service")


class CreateUserRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., max_length=1024)
    name: str = Field(..., max_length=255)
    age: int = Field(..., ge=0)

    def to_user(self) -> User:
        return User(
            email=self.email.strip(),
            password=self.password,
            name=self.name.strip(),
            age=self.age,
        )


class UserResponse(BaseModel):
    email: str
    password: str
    name: str
    age: int


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(**user.to_dict())


def _create(service: UserService, user: User) -> PlainTextResponse:
    try:
        service.create_user(user)
    except StorageError as exc:
        logger.error("Failed to store user %s: %s", user.email, exc)
        return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    except UserStoreError as exc:
        logger.info("Rejected user %s: %s", user.email, exc)
        return PlainTextResponse(str(exc), status_code=status.HTTP_400_BAD_REQUEST)
    return PlainTextResponse("Create user", status_code=status.HTTP_201_CREATED)


def register_api_routes(app: FastAPI, service: UserService, cache: UserListCache) -> None:
    """Expose the user endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/create", response_class=PlainTextResponse, status_code=status.HTTP_201_CREATED)
    def create_demo_user() -> PlainTextResponse:
        return _create(service, DEMO_USER)

    @app.post("/users", response_class=PlainTextResponse, status_code=status.HTTP_201_CREATED)
    def create_user(request: CreateUserRequest) -> PlainTextResponse:
        return _create(service, request.to_user())

    @app.get("/users", response_model=List[UserResponse])
    def list_users():
        try:
            users = cache.get_cache_all_users()
        except StorageError as exc:
            logger.error("Failed to load users: %s", exc)
            return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return [_user_to_response(user) for user in users]


def create_app(
    *,
    database: Database | None = None,
    cache: UserListCache | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the user directory."""

    db = database or Database(resolve_database_path(os.getenv("USERCACHE_DB_PATH")))
    db.initialize()

    service = UserService(db)
    user_cache = cache or UserListCache(db)

    app = FastAPI(
        title="User Directory API",
        version="0.1.0",
        description="Stores user records and serves the user list from an in-process cache.",
    )

    app.state.database = db
    app.state.user_service = service
    app.state.user_cache = user_cache

    register_api_routes(app, service, user_cache)

    return app


__all__ = ["CreateUserRequest", "UserResponse", "create_app", "register_api_routes"]
