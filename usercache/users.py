"""Service layer sitting between the HTTP handlers and the user store."""

from __future__ import annotations

import logging
from typing import List

from .database import Database
from .models import User

logger = logging.getLogger("usercache.users")


class UserService:
    """Delegate user operations to the underlying :class:`Database`.

    The service performs no caching of its own. In particular, creating a user
    does not refresh any :class:`~usercache.cache.UserListCache` built on the
    same database.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    @property
    def database(self) -> Database:
        return self._database

    def create_user(self, user: User) -> None:
        self._database.create_user(user)
        logger.info("Created user %s", user.email)

    def get_all_users(self) -> List[User]:
        return self._database.get_all_users()


__all__ = ["UserService"]
