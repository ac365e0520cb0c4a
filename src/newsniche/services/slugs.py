"""URL slugs for English and Bangla titles."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from newsniche.models.base import Locale

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_WHITESPACE = re.compile(r"\s+")
_NOT_EN = re.compile(r"[^a-z0-9-]")
_NOT_BN = re.compile(r"[^ঀ-৿a-z0-9-]")
_HYPHENS = re.compile(r"-+")

FALLBACK_SLUG = "post"


def generate_slug(title: str | None, locale: Locale = Locale.EN) -> str:
    """Turn a title into a slug; Bangla letters survive in Bangla slugs."""
    if not title:
        return ""
    slug = _WHITESPACE.sub("-", title.strip().lower())
    slug = (_NOT_BN if locale == Locale.BN else _NOT_EN).sub("", slug)
    return _HYPHENS.sub("-", slug).strip("-")


async def generate_unique_slug(
    title: str,
    locale: Locale,
    exists: Callable[[Locale, str], Awaitable[bool]],
) -> str:
    """Append ``-1``, ``-2``... to the base slug until ``exists`` says it is free."""
    base = generate_slug(title, locale) or FALLBACK_SLUG
    slug = base
    counter = 1
    while await exists(locale, slug):
        slug = f"{base}-{counter}"
        counter += 1
    return slug
