"""Tests for edit-link token issue and verification."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from newsniche.models.submission import SubmissionKind
from newsniche.services.edit_tokens import EditTokenService

SECRET = "test-secret-with-enough-entropy-123456"


@pytest.fixture
def tokens() -> EditTokenService:
    return EditTokenService(SECRET)


def test_requires_secret():
    with pytest.raises(ValueError, match="secret"):
        EditTokenService("")


def test_issued_token_verifies(tokens):
    token = tokens.issue("sub-1", SubmissionKind.GUEST)
    assert tokens.verify(token, "sub-1", SubmissionKind.GUEST) is True


def test_claims_carry_purpose_and_expiry(tokens):
    now = datetime.now(UTC)
    token = tokens.issue("sub-1", SubmissionKind.SPONSORED, now=now)
    claims = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert claims["sid"] == "sub-1"
    assert claims["type"] == "sponsored_edit"
    assert claims["exp"] - claims["iat"] == int(timedelta(days=3).total_seconds())


def test_token_for_other_submission_rejected(tokens):
    token = tokens.issue("sub-1", SubmissionKind.GUEST)
    assert tokens.verify(token, "sub-2", SubmissionKind.GUEST) is False


def test_token_for_other_kind_rejected(tokens):
    token = tokens.issue("sub-1", SubmissionKind.GUEST)
    assert tokens.verify(token, "sub-1", SubmissionKind.SPONSORED) is False


def test_expired_token_rejected(tokens):
    token = tokens.issue("sub-1", SubmissionKind.GUEST, now=datetime.now(UTC) - timedelta(days=4))
    assert tokens.verify(token, "sub-1", SubmissionKind.GUEST) is False


def test_token_signed_with_other_secret_rejected(tokens):
    forged = EditTokenService("another-secret-with-enough-entropy-0987").issue(
        "sub-1", SubmissionKind.GUEST
    )
    assert tokens.verify(forged, "sub-1", SubmissionKind.GUEST) is False


def test_garbage_rejected(tokens):
    assert tokens.verify("not-a-jwt", "sub-1", SubmissionKind.GUEST) is False


def test_token_missing_claims_rejected(tokens):
    token = jwt.encode(
        {"sid": "sub-1", "exp": datetime.now(UTC) + timedelta(hours=1)},
        SECRET,
        algorithm="HS256",
    )
    assert tokens.verify(token, "sub-1", SubmissionKind.GUEST) is False


def test_custom_ttl(tokens):
    short = EditTokenService(SECRET, ttl=timedelta(minutes=5))
    token = short.issue("sub-1", SubmissionKind.GUEST, now=datetime.now(UTC) - timedelta(minutes=6))
    assert short.verify(token, "sub-1", SubmissionKind.GUEST) is False
