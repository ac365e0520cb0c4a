"""Tests for the authentication middleware."""

from unittest.mock import MagicMock

import pytest

from newsniche.auth.credentials import Authenticated, EditToken, Role
from newsniche.auth.middleware import (
    content_credential,
    get_account,
    get_user,
    require_account,
    require_role,
)
from newsniche.errors import AuthenticationError, AuthorizationError


def _request(session=None):
    request = MagicMock()
    if session is None:
        del request.session
    else:
        request.session = session
    return request


def test_get_user_returns_none_without_session():
    assert get_user(_request()) is None


def test_get_user_returns_none_for_empty_session():
    assert get_user(_request({})) is None


def test_get_user_returns_user_from_session():
    user = get_user(_request({"user": {"id": "u-1"}}))
    assert user == {"id": "u-1"}


def test_get_account_builds_credential():
    account = get_account(_request({"user": {"id": "u-1", "role": "moderator"}}))
    assert account == Authenticated(account_id="u-1", role=Role.MODERATOR)
    assert account.is_privileged is True


def test_get_account_unknown_role_downgrades_to_user():
    account = get_account(_request({"user": {"id": "u-1", "role": "superuser"}}))
    assert account.role == Role.USER


def test_get_account_without_id_is_anonymous():
    assert get_account(_request({"user": {"name": "x"}})) is None


def test_require_account_raises_when_anonymous():
    with pytest.raises(AuthenticationError):
        require_account(None)


def test_require_role_admits_listed_roles():
    dependency = require_role(Role.MODERATOR, Role.ADMIN)
    admin = Authenticated(account_id="a-1", role=Role.ADMIN)
    assert dependency(admin) is admin


def test_require_role_rejects_other_roles():
    dependency = require_role(Role.ADMIN)
    with pytest.raises(AuthorizationError):
        dependency(Authenticated(account_id="m-1", role=Role.MODERATOR))


def test_content_credential_prefers_token_and_keeps_account():
    account = Authenticated(account_id="u-1")
    credential = content_credential(account, edit_token="tok")
    assert credential == EditToken(raw="tok", account=account)


def test_content_credential_falls_back_to_account():
    account = Authenticated(account_id="m-1", role=Role.MODERATOR)
    assert content_credential(account, edit_token=None) is account


def test_content_credential_requires_something():
    with pytest.raises(AuthorizationError):
        content_credential(None, edit_token=None)
