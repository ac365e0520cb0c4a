"""Signed, short-lived edit-link tokens scoped to a single submission."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import jwt

from newsniche.models.submission import SubmissionKind
from newsniche.services.kinds import policy_for

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(days=3)


class EditTokenService:
    """Issue and verify edit tokens.

    Tokens are not persisted: a token is only the signed claim set
    ``{sid, type, iat, exp}``.
    """

    def __init__(self, secret: str, ttl: timedelta = DEFAULT_TTL) -> None:
        if not secret:
            msg = "An edit token secret is required"
            raise ValueError(msg)
        self._secret = secret
        self._ttl = ttl

    def issue(self, submission_id: str, kind: SubmissionKind, *, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(UTC)
        claims = {
            "sid": submission_id,
            "type": policy_for(kind).token_purpose,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str, submission_id: str, kind: SubmissionKind) -> bool:
        """Return True only for an unexpired token minted for this submission and kind."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                options={"require": ["exp", "sid", "type"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Edit token expired — submission=%s", submission_id)
            return False
        except jwt.InvalidTokenError as exc:
            logger.info("Edit token rejected — submission=%s reason=%s", submission_id, exc)
            return False

        if claims.get("type") != policy_for(kind).token_purpose:
            logger.info(
                "Edit token purpose mismatch — submission=%s purpose=%s",
                submission_id,
                claims.get("type"),
            )
            return False
        if claims.get("sid") != submission_id:
            logger.info("Edit token scoped to another submission — submission=%s", submission_id)
            return False
        return True
