"""Caller identity as handed over by the authentication collaborator."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Platform role."""

    ADMIN = "admin"  # Platform administrator
    STORE_OWNER = "store_owner"  # Owns zero or more stores
    USER = "user"  # Submits ratings


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: user id plus role."""

    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
