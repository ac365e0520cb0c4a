"""Shared document base and localized value types."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


class DocumentBase(BaseModel):
    """Fields common to every Cosmos DB document."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None


class Locale(StrEnum):
    EN = "en"
    BN = "bn"


PRIMARY_LOCALE = Locale.EN


class LocalizedText(BaseModel):
    """A value present in the primary locale and optionally in Bangla."""

    en: str | None = None
    bn: str | None = None

    def get(self, locale: Locale) -> str | None:
        return getattr(self, locale.value)

    def present(self) -> dict[Locale, str]:
        """Return the locales that carry non-blank text."""
        return {
            locale: value
            for locale in Locale
            if (value := self.get(locale)) is not None and value.strip()
        }
