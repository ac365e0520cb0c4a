"""Allowlist HTML sanitizer for user-supplied rich text.

Cleaning and link rewriting both run inside bleach's html5lib token stream;
extra behaviour is added as token filters via ``build_cleaner``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bleach import html5lib_shim
from bleach.sanitizer import ALLOWED_TAGS as BLEACH_TAGS
from bleach.sanitizer import Cleaner

from newsniche.models.base import LocalizedText
from newsniche.services.links import HREF, SAFE_REL, is_relative, mark_anchor

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

ALLOWED_TAGS = frozenset(BLEACH_TAGS) | {
    "p",
    "br",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "img",
    "figure",
    "figcaption",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
}

ALLOWED_ATTRIBUTES = {
    "a": ["href", "name", "target", "rel", "title", "class"],
    "img": ["src", "alt", "title", "width", "height", "loading", "class"],
    "*": ["class"],
}


class LinkSafetyFilter(html5lib_shim.Filter):
    """Every anchor gets ``noopener noreferrer``; external anchors open in a new tab."""

    def __iter__(self) -> Iterator[dict]:
        for token in super().__iter__():
            if token["type"] == "StartTag" and token["name"] == "a":
                href = (token["data"].get(HREF) or "").strip()
                mark_anchor(token["data"], SAFE_REL, new_tab=bool(href) and not is_relative(href))
            yield token


def build_cleaner(*filters: Callable[..., html5lib_shim.Filter]) -> Cleaner:
    """A Cleaner with the project allowlist; ``filters`` run after sanitizing."""
    return Cleaner(
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True,
        filters=list(filters),
    )


def sanitize_html(html: str | None) -> str:
    """Strip disallowed markup and add safety attributes to links."""
    return build_cleaner(LinkSafetyFilter).clean(html or "")


def sanitize_localized(text: LocalizedText) -> LocalizedText:
    """Sanitize every locale that carries text; absent locales stay absent."""
    return LocalizedText(
        en=sanitize_html(text.en) if text.en is not None else None,
        bn=sanitize_html(text.bn) if text.bn is not None else None,
    )
