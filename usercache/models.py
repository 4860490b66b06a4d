"""Domain models for the user directory."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Union


@dataclass(frozen=True)
class User:
    """Represents a user record stored in the ``users`` table."""

    email: str
    password: str
    name: str
    age: int

    def to_dict(self) -> Dict[str, Union[str, int]]:
        return asdict(self)


# Record inserted by the legacy ``GET /create`` endpoint.
DEMO_USER = User(
    email="demo@example.com",
    password="demo-password",
    name="Demo User",
    age=20,
)


__all__ = ["User", "DEMO_USER"]
