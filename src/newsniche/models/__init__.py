"""Data models for Cosmos DB document types."""

from newsniche.models.base import DocumentBase, Locale, LocalizedText
from newsniche.models.post import (
    AuthorSnapshot,
    Post,
    PostStatus,
    PostType,
    SeoSafety,
    SponsorshipSnapshot,
)
from newsniche.models.submission import (
    GuestDetails,
    GuestTier,
    PostPayload,
    SponsorshipDetails,
    SponsorshipDuration,
    SponsorshipPlacement,
    Submission,
    SubmissionKind,
    SubmissionStatus,
    SubmitterProfile,
)

__all__ = [
    "AuthorSnapshot",
    "DocumentBase",
    "GuestDetails",
    "GuestTier",
    "Locale",
    "LocalizedText",
    "Post",
    "PostPayload",
    "PostStatus",
    "PostType",
    "SeoSafety",
    "SponsorshipDetails",
    "SponsorshipDuration",
    "SponsorshipPlacement",
    "SponsorshipSnapshot",
    "Submission",
    "SubmissionKind",
    "SubmissionStatus",
    "SubmitterProfile",
]
