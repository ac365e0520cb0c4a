"""Link policy enforced on submitted content before it becomes a post.

Content is re-parsed with the sanitizer's bleach cleaner and the policy runs
as a token filter: HTML anchors are judged on their parsed ``href`` and
markdown ``[text](url)`` links are found in the text between tags. Anchors to
blocked hosts are unwrapped and their text joins the surrounding text before
markdown is scanned, so one pass reaches a fixed point and ``apply`` is
idempotent.
"""

from __future__ import annotations

import logging
import re
from functools import partial
from html import unescape
from typing import TYPE_CHECKING

from bleach import html5lib_shim

from newsniche.models.base import LocalizedText
from newsniche.services.kinds import policy_for
from newsniche.services.links import (
    HREF,
    REL,
    SPONSORED_REL,
    TARGET,
    host_of,
    is_relative,
    is_web_url,
    mark_anchor,
    merge_rel,
)
from newsniche.services.sanitizer import build_cleaner

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from newsniche.models.submission import SubmissionKind

logger = logging.getLogger(__name__)

# Destinations may hold one level of balanced parentheses, e.g. wiki URLs.
MARKDOWN_LINK_RE = re.compile(
    r"\[(?P<text>[^\]]+)\]\((?P<url>(?:[^()\s]|\([^()\s]*\))+)\)"
)

_TEXT_TOKENS = frozenset({"Characters", "SpaceCharacters", "Entity"})

# Entities stay entities across the text rewrite. NUL never survives bleach's
# tokenizer, so it is free to delimit them.
_ENTITY_MARK = "\x00{}\x00"
_ENTITY_RE = re.compile(r"\x00([^\x00]*)\x00")


def _decode(text: str) -> str:
    return _ENTITY_RE.sub(lambda m: unescape(f"&{m.group(1)};"), text)


def _text_tokens(text: str) -> Iterator[dict]:
    pos = 0
    for match in _ENTITY_RE.finditer(text):
        if match.start() > pos:
            yield {"type": "Characters", "data": text[pos : match.start()]}
        yield {"type": "Entity", "name": match.group(1)}
        pos = match.end()
    if pos < len(text):
        yield {"type": "Characters", "data": text[pos:]}


class ContentPolicyFilter:
    """Strip links to blocked hosts and mark sponsored outbound links.

    ``blocked_hosts`` is injected once; the filter never reads configuration
    at call time.
    """

    def __init__(self, blocked_hosts: Iterable[str]) -> None:
        self._blocked = tuple(
            h.strip().lower().rstrip(".") for h in blocked_hosts if h and h.strip()
        )

    @property
    def blocked_hosts(self) -> tuple[str, ...]:
        return self._blocked

    def is_blocked_host(self, host: str) -> bool:
        host = host.lower().rstrip(".")
        return any(host == b or host.endswith(f".{b}") for b in self._blocked)

    def classify(self, url: str | None) -> str:
        """``"blocked"``, ``"outbound"`` or ``"local"`` (relative, hostless or malformed)."""
        url = (url or "").strip()
        if not url or is_relative(url):
            return "local"
        host = host_of(url)
        if host is None:
            return "local"
        if self.is_blocked_host(host):
            return "blocked"
        return "outbound" if is_web_url(url) else "local"

    def apply(self, content: str | None, kind: SubmissionKind) -> str | None:
        """Return ``content`` with the link policy for ``kind`` applied."""
        if not content:
            return content
        link_filter = partial(
            LinkPolicyFilter,
            policy=self,
            mark_sponsored=policy_for(kind).mark_outbound_links,
        )
        return build_cleaner(link_filter).clean(content)

    def apply_localized(self, text: LocalizedText, kind: SubmissionKind) -> LocalizedText:
        return LocalizedText(en=self.apply(text.en, kind), bn=self.apply(text.bn, kind))

    def strip_blocked_markdown(self, text: str) -> str:
        """Replace markdown links to blocked hosts with their text until none remain."""

        def unlink(match: re.Match[str]) -> str:
            if self.classify(_decode(match.group("url"))) == "blocked":
                logger.debug("Stripped blocked link — url=%s", match.group("url"))
                return match.group("text")
            return match.group(0)

        while True:
            stripped = MARKDOWN_LINK_RE.sub(unlink, text)
            if stripped == text:
                return text
            text = stripped


class LinkPolicyFilter(html5lib_shim.Filter):
    """html5lib filter applying a ``ContentPolicyFilter`` to one token stream."""

    def __init__(
        self, source: Iterable[dict], *, policy: ContentPolicyFilter, mark_sponsored: bool
    ) -> None:
        super().__init__(source)
        self.policy = policy
        self.mark_sponsored = mark_sponsored

    def __iter__(self) -> Iterator[dict]:
        run: list[dict] = []
        # One entry per open anchor: True when its tags were dropped.
        unwrapped: list[bool] = []
        for token in super().__iter__():
            if token["type"] in _TEXT_TOKENS:
                run.append(token)
                continue
            is_anchor = token.get("name") == "a"
            if is_anchor and token["type"] == "StartTag":
                href = token["data"].get(HREF)
                if self.policy.classify(href) == "blocked":
                    logger.debug("Stripped blocked anchor — href=%s", href)
                    unwrapped.append(True)
                    continue
            if is_anchor and token["type"] == "EndTag" and unwrapped and unwrapped[-1]:
                unwrapped.pop()
                continue

            yield from self._rewrite_text(run, inside_link=not all(unwrapped))
            run = []

            if is_anchor and token["type"] == "StartTag":
                if self.mark_sponsored and self.policy.classify(token["data"].get(HREF)) == "outbound":
                    mark_anchor(token["data"], SPONSORED_REL, new_tab=True)
                unwrapped.append(False)
            elif is_anchor and token["type"] == "EndTag" and unwrapped:
                unwrapped.pop()
            yield token
        yield from self._rewrite_text(run, inside_link=not all(unwrapped))

    def _rewrite_text(self, run: list[dict], *, inside_link: bool) -> Iterator[dict]:
        if not run:
            return
        text = "".join(
            _ENTITY_MARK.format(t["name"]) if t["type"] == "Entity" else t["data"] for t in run
        )
        text = self.policy.strip_blocked_markdown(text)
        if inside_link or not self.mark_sponsored:
            yield from _text_tokens(text)
            return

        pos = 0
        for match in MARKDOWN_LINK_RE.finditer(text):
            url = _decode(match.group("url"))
            if self.policy.classify(url) != "outbound":
                continue
            yield from _text_tokens(text[pos : match.start()])
            yield {
                "type": "StartTag",
                "name": "a",
                "data": {HREF: url, REL: merge_rel(None, SPONSORED_REL), TARGET: "_blank"},
            }
            yield from _text_tokens(match.group("text"))
            yield {"type": "EndTag", "name": "a"}
            pos = match.end()
        yield from _text_tokens(text[pos:])
