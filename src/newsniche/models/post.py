"""Canonical post document model — the published, publicly served content."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from newsniche.models.base import DocumentBase, LocalizedText
from newsniche.models.submission import SocialLinks


class PostType(StrEnum):
    REGULAR = "regular"
    GUEST = "guest"
    SPONSORED = "sponsored"


class PostStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class AuthorSnapshot(BaseModel):
    """Author details copied from the originating submission at publish time."""

    name: str
    email: str | None = None
    bio: str | None = None
    website: str | None = None
    company: str | None = None
    social: SocialLinks = Field(default_factory=SocialLinks)
    is_verified: bool = False


class SponsorshipSnapshot(BaseModel):
    sponsor: str
    sponsor_email: str | None = None
    sponsor_website: str | None = None
    sponsor_logo: str | None = None
    sponsor_industry: str | None = None
    is_disclosed: bool = True
    disclosure_text: LocalizedText = Field(default_factory=LocalizedText)
    sponsored_at: datetime | None = None
    duration: str | None = None
    placement: str | None = None


class SeoSafety(BaseModel):
    is_sponsored: bool = False
    has_disclosure: bool = False
    disclosure_position: str = "none"
    nofollow_links: bool = False
    competitor_links: bool = False
    quality_score: int = 8


class ReadTime(BaseModel):
    en: int | None = None
    bn: int | None = None


class Post(DocumentBase):
    """A published post. Decoupled from its source submission after publish."""

    post_type: PostType = PostType.REGULAR
    status: PostStatus = PostStatus.DRAFT
    title: LocalizedText = Field(default_factory=LocalizedText)
    excerpt: LocalizedText = Field(default_factory=LocalizedText)
    content: LocalizedText = Field(default_factory=LocalizedText)
    category: LocalizedText = Field(default_factory=LocalizedText)
    slug: LocalizedText = Field(default_factory=LocalizedText)
    tags: list[LocalizedText] = Field(default_factory=list)
    featured_image: str | None = None
    author: AuthorSnapshot | None = None
    guest_author: AuthorSnapshot | None = None
    sponsorship: SponsorshipSnapshot | None = None
    seo_safety: SeoSafety = Field(default_factory=SeoSafety)
    read_time: ReadTime = Field(default_factory=ReadTime)
    source_submission_id: str | None = None
    published_at: datetime | None = None
    view_count: int = 0
    is_featured: bool = False
