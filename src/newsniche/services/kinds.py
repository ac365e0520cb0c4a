"""Per-kind policy objects that parameterize the single submission workflow."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from newsniche.models.base import Locale
from newsniche.models.post import PostType
from newsniche.models.submission import SubmissionKind, SubmissionStatus

if TYPE_CHECKING:
    from newsniche.models.submission import (
        GuestDetails,
        PostPayload,
        SponsorshipDetails,
        SubmitterProfile,
    )

MIN_CONTENT_LENGTH = 800
MAX_TITLE_LENGTH = 200
MAX_EXCERPT_LENGTH = 300
MIN_SPONSOR_BUDGET = 50

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
_WEBSITE_RE = re.compile(r"^https?://.+", re.IGNORECASE)
_LOCALE_NAMES = {Locale.EN: "English", Locale.BN: "Bangla"}

# Moderator-driven transitions. Publishing (approved -> published) and
# sponsorship expiry (published -> expired) are owned by dedicated operations.
REVIEW_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.PENDING: frozenset({SubmissionStatus.UNDER_REVIEW}),
    SubmissionStatus.UNDER_REVIEW: frozenset(
        {
            SubmissionStatus.APPROVED,
            SubmissionStatus.REJECTED,
            SubmissionStatus.NEEDS_REVISION,
        }
    ),
}

# Statuses in which submitted content may still change.
EDITABLE_STATUSES = frozenset(
    {
        SubmissionStatus.PENDING,
        SubmissionStatus.UNDER_REVIEW,
        SubmissionStatus.APPROVED,
        SubmissionStatus.NEEDS_REVISION,
    }
)


@dataclass(frozen=True)
class SubmissionKindPolicy:
    kind: SubmissionKind
    label: str
    noun: str
    statuses: frozenset[SubmissionStatus]
    required_submitter_fields: tuple[str, ...]
    token_purpose: str
    post_type: PostType
    mark_outbound_links: bool
    review_eta: str
    edit_path: str

    def allows(self, status: SubmissionStatus) -> bool:
        return status in self.statuses

    def review_targets(self, current: SubmissionStatus) -> frozenset[SubmissionStatus]:
        """Statuses a moderator may move a submission to from ``current``."""
        return frozenset(s for s in REVIEW_TRANSITIONS.get(current, ()) if self.allows(s))

    def validate(
        self,
        profile: SubmitterProfile,
        payload: PostPayload,
        guest: GuestDetails | None,
        sponsorship: SponsorshipDetails | None,
    ) -> list[str]:
        """Return every problem with a submission, empty when it is acceptable."""
        errors = self._validate_profile(profile)
        errors.extend(validate_payload(payload))
        if self.kind == SubmissionKind.SPONSORED:
            budget = sponsorship.budget if sponsorship else None
            if budget is None or budget < MIN_SPONSOR_BUDGET:
                errors.append(f"Budget must be at least ${MIN_SPONSOR_BUDGET}")
        elif sponsorship is not None:
            errors.append("Guest submissions cannot carry sponsorship details")
        if self.kind == SubmissionKind.SPONSORED and guest is not None:
            errors.append("Sponsored submissions cannot carry guest details")
        return errors

    def _validate_profile(self, profile: SubmitterProfile) -> list[str]:
        errors = [
            f"{name.capitalize()} is required"
            for name in self.required_submitter_fields
            if not (getattr(profile, name) or "").strip()
        ]
        if profile.email and not _EMAIL_RE.match(profile.email.strip()):
            errors.append("Please enter a valid email address")
        if profile.website and not _WEBSITE_RE.match(profile.website.strip()):
            errors.append("Website must be a valid URL")
        return errors


def validate_content(locale: Locale, content: str | None) -> list[str]:
    """Check a single locale's body against the minimum length."""
    if content is None or len(content.strip()) < MIN_CONTENT_LENGTH:
        return [
            f"{_LOCALE_NAMES[locale]} content must be at least "
            f"{MIN_CONTENT_LENGTH} characters long"
        ]
    return []


def validate_payload(payload: PostPayload) -> list[str]:
    """Primary locale fields are mandatory; Bangla fields must hang together."""
    errors: list[str] = []
    for label, value in (
        ("title", payload.title.en),
        ("excerpt", payload.excerpt.en),
        ("content", payload.content.en),
        ("category", payload.category.en),
    ):
        if not (value or "").strip():
            errors.append(f"English {label} is required")
    if not (payload.featured_image or "").strip():
        errors.append("Featured image is required")

    if (payload.content.en or "").strip():
        errors.extend(validate_content(Locale.EN, payload.content.en))
    if (payload.content.bn or "").strip():
        errors.extend(validate_content(Locale.BN, payload.content.bn))
        if not (payload.title.bn or "").strip():
            errors.append("Bangla title is required when Bangla content is provided")

    for locale in Locale:
        title = payload.title.get(locale)
        if title and len(title.strip()) > MAX_TITLE_LENGTH:
            errors.append(
                f"{_LOCALE_NAMES[locale]} title cannot exceed {MAX_TITLE_LENGTH} characters"
            )
        excerpt = payload.excerpt.get(locale)
        if excerpt and len(excerpt) > MAX_EXCERPT_LENGTH:
            errors.append(
                f"{_LOCALE_NAMES[locale]} excerpt cannot exceed {MAX_EXCERPT_LENGTH} characters"
            )
    return errors


GUEST_POLICY = SubmissionKindPolicy(
    kind=SubmissionKind.GUEST,
    label="Guest submission",
    noun="guest post",
    statuses=frozenset(
        {
            SubmissionStatus.PENDING,
            SubmissionStatus.UNDER_REVIEW,
            SubmissionStatus.APPROVED,
            SubmissionStatus.REJECTED,
            SubmissionStatus.NEEDS_REVISION,
            SubmissionStatus.PUBLISHED,
        }
    ),
    required_submitter_fields=("name", "email", "bio"),
    token_purpose="guest_edit",
    post_type=PostType.GUEST,
    mark_outbound_links=False,
    review_eta="5-7 business days",
    edit_path="guest-post",
)

SPONSORED_POLICY = SubmissionKindPolicy(
    kind=SubmissionKind.SPONSORED,
    label="Sponsored submission",
    noun="sponsored post",
    statuses=frozenset(
        {
            SubmissionStatus.PENDING,
            SubmissionStatus.UNDER_REVIEW,
            SubmissionStatus.APPROVED,
            SubmissionStatus.REJECTED,
            SubmissionStatus.PUBLISHED,
            SubmissionStatus.EXPIRED,
        }
    ),
    required_submitter_fields=("name", "email", "company", "website", "industry"),
    token_purpose="sponsored_edit",
    post_type=PostType.SPONSORED,
    mark_outbound_links=True,
    review_eta="24-48 hours",
    edit_path="sponsored-post",
)

_POLICIES = {p.kind: p for p in (GUEST_POLICY, SPONSORED_POLICY)}


def policy_for(kind: SubmissionKind) -> SubmissionKindPolicy:
    return _POLICIES[SubmissionKind(kind)]
