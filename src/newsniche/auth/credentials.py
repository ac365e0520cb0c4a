"""Credentials passed explicitly into workflow operations.

A workflow call is authorized from these values alone; nothing is read from
ambient request state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


PRIVILEGED_ROLES = frozenset({Role.MODERATOR, Role.ADMIN})


@dataclass(frozen=True)
class Authenticated:
    """An account vouched for by the account service."""

    account_id: str
    role: Role = Role.USER

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class EditToken:
    """A raw edit-link token, optionally presented alongside a logged-in account."""

    raw: str
    account: Authenticated | None = None


Credential = Authenticated | EditToken
