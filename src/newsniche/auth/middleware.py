"""Request helpers that turn the session and headers into credentials."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import Depends, Header, Request

from newsniche.auth.credentials import Authenticated, Credential, EditToken, Role
from newsniche.errors import AuthenticationError, AuthorizationError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

EDIT_TOKEN_HEADER = "x-edit-token"


def get_user(request: Request) -> dict[str, Any] | None:
    """Extract the authenticated user from the session, if present."""
    return request.session.get("user") if hasattr(request, "session") else None


def get_account(request: Request) -> Authenticated | None:
    """Build an ``Authenticated`` credential from the session user, if any."""
    user = get_user(request)
    if not user or not user.get("id"):
        return None
    try:
        role = Role(user.get("role", Role.USER))
    except ValueError:
        logger.warning("Unknown role in session — user=%s role=%s", user["id"], user.get("role"))
        role = Role.USER
    return Authenticated(account_id=str(user["id"]), role=role)


OptionalAccount = Annotated[Authenticated | None, Depends(get_account)]


def require_account(account: OptionalAccount) -> Authenticated:
    """Return the authenticated account or raise 401."""
    if account is None:
        raise AuthenticationError
    return account


RequiredAccount = Annotated[Authenticated, Depends(require_account)]


def require_role(*roles: Role) -> Callable[[Authenticated], Authenticated]:
    """Build a dependency that admits only the given roles."""
    allowed = frozenset(roles)

    def dependency(account: RequiredAccount) -> Authenticated:
        if account.role not in allowed:
            raise AuthorizationError("Insufficient role permissions")
        return account

    return dependency


def content_credential(
    account: OptionalAccount,
    edit_token: Annotated[str | None, Header(alias=EDIT_TOKEN_HEADER)] = None,
) -> Credential:
    """Resolve the credential for a content revision request.

    The edit token wins when present; the session account rides along so the
    workflow can refuse a logged-in non-owner.
    """
    if edit_token:
        return EditToken(raw=edit_token, account=account)
    if account is None:
        raise AuthorizationError("Edit token required")
    return account


Moderator = Annotated[Authenticated, Depends(require_role(Role.MODERATOR, Role.ADMIN))]
Admin = Annotated[Authenticated, Depends(require_role(Role.ADMIN))]
ContentCredential = Annotated[Credential, Depends(content_credential)]
