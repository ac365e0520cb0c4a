"""Authentication module — session accounts and edit-link credentials."""

from newsniche.auth.credentials import Authenticated, Credential, EditToken, Role
from newsniche.auth.middleware import get_account, require_account, require_role

__all__ = [
    "Authenticated",
    "Credential",
    "EditToken",
    "Role",
    "get_account",
    "require_account",
    "require_role",
]
