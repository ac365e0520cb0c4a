"""Submission document model — externally authored drafts awaiting editorial review."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from newsniche.models.base import DocumentBase, LocalizedText, utcnow

DEFAULT_DISCLOSURE = LocalizedText(
    en="This is a sponsored post. The content and opinions expressed are those of the sponsor.",
    bn="এটি একটি স্পনসর করা পোস্ট। প্রকাশিত বিষয়বস্তু এবং মতামত স্পনসরের।",
)


class SubmissionKind(StrEnum):
    GUEST = "guest"
    SPONSORED = "sponsored"


class SubmissionStatus(StrEnum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVISION = "needs_revision"
    PUBLISHED = "published"
    EXPIRED = "expired"


class GuestTier(StrEnum):
    FREE = "free"
    PRIORITY = "priority"
    FEATURED = "featured"


class SponsorshipDuration(StrEnum):
    ONE_DAY = "1_day"
    THREE_DAYS = "3_days"
    ONE_WEEK = "1_week"
    TWO_WEEKS = "2_weeks"
    ONE_MONTH = "1_month"

    @property
    def days(self) -> int:
        return _DURATION_DAYS[self]


_DURATION_DAYS = {
    SponsorshipDuration.ONE_DAY: 1,
    SponsorshipDuration.THREE_DAYS: 3,
    SponsorshipDuration.ONE_WEEK: 7,
    SponsorshipDuration.TWO_WEEKS: 14,
    SponsorshipDuration.ONE_MONTH: 30,
}


class SponsorshipPlacement(StrEnum):
    HOMEPAGE = "homepage"
    CATEGORY_PAGE = "category_page"
    SIDEBAR = "sidebar"
    NEWSLETTER = "newsletter"


class SocialLinks(BaseModel):
    twitter: str | None = None
    linkedin: str | None = None
    github: str | None = None
    facebook: str | None = None
    instagram: str | None = None


class SubmitterProfile(BaseModel):
    """Identity of the person or company behind a submission.

    Which fields are mandatory depends on the submission kind.
    """

    name: str | None = Field(default=None, max_length=100)
    email: str | None = None
    phone: str | None = None
    bio: str | None = Field(default=None, max_length=500)
    website: str | None = None
    company: str | None = Field(default=None, max_length=100)
    industry: str | None = None
    logo: str | None = None
    social: SocialLinks = Field(default_factory=SocialLinks)
    is_verified: bool = False


class PostPayload(BaseModel):
    title: LocalizedText = Field(default_factory=LocalizedText)
    excerpt: LocalizedText = Field(default_factory=LocalizedText)
    content: LocalizedText = Field(default_factory=LocalizedText)
    category: LocalizedText = Field(default_factory=LocalizedText)
    tags: list[LocalizedText] = Field(default_factory=list)
    featured_image: str | None = None


class GuestDetails(BaseModel):
    tier: GuestTier = GuestTier.FREE
    special_notes: str | None = Field(default=None, max_length=500)
    target_keywords: list[str] = Field(default_factory=list)
    target_audience: str | None = Field(default=None, max_length=200)


class SponsorshipDetails(BaseModel):
    budget: float | None = None
    duration: SponsorshipDuration = SponsorshipDuration.ONE_WEEK
    placement: SponsorshipPlacement = SponsorshipPlacement.CATEGORY_PAGE
    disclosure_text: LocalizedText = Field(
        default_factory=lambda: DEFAULT_DISCLOSURE.model_copy()
    )
    special_requirements: str | None = Field(default=None, max_length=500)


class SeoReview(BaseModel):
    is_reviewed: bool = False
    quality_score: int = Field(default=8, ge=1, le=10)
    issues: list[str] = Field(default_factory=list)
    competitor_links: bool = False
    nofollow_links: bool = False
    notes: str | None = None


class Submission(DocumentBase):
    """A guest or sponsored post submission.

    ``status`` is frozen on the instance; only the workflow replaces it,
    through ``model_copy``.
    """

    kind: SubmissionKind
    owner_id: str | None = None
    submitter: SubmitterProfile
    post: PostPayload
    guest: GuestDetails | None = None
    sponsorship: SponsorshipDetails | None = None
    status: SubmissionStatus = Field(default=SubmissionStatus.PENDING, frozen=True)

    assigned_to: str | None = None
    admin_notes: str | None = Field(default=None, max_length=1000)
    rejection_reason: str | None = Field(default=None, max_length=500)
    revision_notes: str | None = Field(default=None, max_length=1000)
    seo_review: SeoReview = Field(default_factory=SeoReview)

    submitted_at: datetime = Field(default_factory=utcnow)
    reviewed_at: datetime | None = None
    approved_at: datetime | None = None
    published_at: datetime | None = None
    expires_at: datetime | None = None

    published_post_id: str | None = None
