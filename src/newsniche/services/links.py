"""URL and anchor attribute helpers shared by the sanitizer and the link policy."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from collections.abc import Iterable

# html5lib token attributes are keyed by (namespace, name).
HREF = (None, "href")
REL = (None, "rel")
TARGET = (None, "target")

SAFE_REL = ("noopener", "noreferrer")
SPONSORED_REL = ("sponsored", "nofollow", "noopener", "noreferrer")

WEB_SCHEMES = frozenset({"", "http", "https"})


def is_relative(url: str) -> bool:
    """Relative paths and in-page anchors. ``//host`` is network-absolute."""
    return (url.startswith("/") and not url.startswith("//")) or url.startswith("#")


def host_of(url: str) -> str | None:
    """Return the lowercased host of an absolute URL, or None if it has none."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host.rstrip(".") if host else None


def is_web_url(url: str) -> bool:
    try:
        return urlsplit(url).scheme.lower() in WEB_SCHEMES
    except ValueError:
        return False


def merge_rel(existing: str | None, extra: Iterable[str]) -> str:
    """Append ``extra`` rel tokens to ``existing``, lowercased and without repeats."""
    tokens: list[str] = []
    for token in [*(existing or "").split(), *extra]:
        if token.lower() not in tokens:
            tokens.append(token.lower())
    return " ".join(tokens)


def mark_anchor(attrs: dict, rel: Iterable[str], *, new_tab: bool) -> None:
    """Merge ``rel`` into an anchor's attributes and optionally force ``target=_blank``."""
    attrs[REL] = merge_rel(attrs.get(REL), rel)
    if new_tab:
        attrs[TARGET] = "_blank"
