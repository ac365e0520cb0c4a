"""Submission workflow — the only code allowed to change a submission's status.

Lifecycle: submit -> review -> approve/reject/request revision -> token-gated
revision -> publish. Publishing turns the submission into a canonical post.

Posts and submissions live in separate containers, so publishing is a
two-phase write: the post is written under an id derived from the submission
id (a retry can never create a second post), then the submission is switched
to ``published`` under an etag precondition. A failed second phase deletes the
post it just created; anything left behind is repaired by
``reconcile_publications``.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from azure.cosmos.exceptions import CosmosHttpResponseError

from newsniche.auth.credentials import Authenticated, Credential, EditToken
from newsniche.database.repositories.base import HTTP_CONFLICT
from newsniche.database.repositories.submissions import SubmissionFilter
from newsniche.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from newsniche.models.base import LocalizedText, utcnow
from newsniche.models.post import (
    AuthorSnapshot,
    Post,
    PostStatus,
    ReadTime,
    SeoSafety,
    SponsorshipSnapshot,
)
from newsniche.models.submission import (
    GuestDetails,
    Submission,
    SubmissionKind,
    SubmissionStatus,
)
from newsniche.services import email_templates
from newsniche.services.kinds import EDITABLE_STATUSES, policy_for, validate_content
from newsniche.services.sanitizer import sanitize_html, sanitize_localized
from newsniche.services.slugs import generate_unique_slug

if TYPE_CHECKING:
    from newsniche.database.repositories.posts import PostRepository, PublishedPostFilter
    from newsniche.database.repositories.submissions import SubmissionRepository
    from newsniche.models.base import Locale
    from newsniche.models.submission import (
        PostPayload,
        SponsorshipDetails,
        SubmitterProfile,
    )
    from newsniche.services.content_policy import ContentPolicyFilter
    from newsniche.services.edit_tokens import EditTokenService
    from newsniche.services.email_templates import OutboundEmail
    from newsniche.services.notifications import Notifier

logger = logging.getLogger(__name__)

_POST_ID_NAMESPACE = uuid.UUID("9b7c1a52-3f0e-4d0b-8a53-2f8c6d1e7a40")
# Posts younger than this may belong to a publish still in flight.
ORPHAN_GRACE = timedelta(minutes=15)
_WORDS_PER_MINUTE = 200
_TAG_RE = re.compile(r"<[^>]+>")


def post_id_for(submission: Submission) -> str:
    """Deterministic canonical post id for a submission."""
    return str(uuid.uuid5(_POST_ID_NAMESPACE, f"{submission.kind.value}:{submission.id}"))


def _read_minutes(content: str | None) -> int | None:
    if not content:
        return None
    words = len(_TAG_RE.sub(" ", content).split())
    return max(1, round(words / _WORDS_PER_MINUTE))


@dataclass
class TransitionResult:
    submission: Submission
    edit_token: str | None = None


@dataclass
class PublishResult:
    submission: Submission
    post: Post


@dataclass
class ReconcileReport:
    removed_orphans: list[str] = field(default_factory=list)
    missing_posts: list[str] = field(default_factory=list)


class SubmissionWorkflow:
    """Orchestrates guest and sponsored submissions through one state machine."""

    def __init__(
        self,
        submissions: SubmissionRepository,
        posts: PostRepository,
        policy_filter: ContentPolicyFilter,
        tokens: EditTokenService,
        notifier: Notifier,
        *,
        frontend_url: str = "",
    ) -> None:
        self._submissions = submissions
        self._posts = posts
        self._policy_filter = policy_filter
        self._tokens = tokens
        self._notifier = notifier
        self._frontend_url = frontend_url.rstrip("/")

    # ------------------------------------------------------------------ helpers

    def _notify(self, email: OutboundEmail) -> None:
        try:
            self._notifier.dispatch(email)
        except Exception:  # noqa: BLE001
            logger.warning("Failed to queue email — subject=%s", email.subject, exc_info=True)

    @staticmethod
    def _require_privileged(actor: Authenticated) -> None:
        if not actor.is_privileged:
            raise AuthorizationError("Insufficient role permissions")

    async def _load(
        self, submission_id: str, expected_kind: SubmissionKind | None = None
    ) -> Submission:
        submission = await self._submissions.get(submission_id, submission_id)
        if submission is None or (expected_kind and submission.kind != expected_kind):
            label = policy_for(expected_kind).label if expected_kind else "Submission"
            raise NotFoundError(label)
        return submission

    def edit_url(self, submission: Submission, token: str) -> str:
        path = policy_for(submission.kind).edit_path
        return f"{self._frontend_url}/en/{path}/edit/{submission.id}?token={token}"

    def submit_url(self, kind: SubmissionKind) -> str:
        return f"{self._frontend_url}/en/{policy_for(kind).edit_path}/submit"

    # ------------------------------------------------------------------- submit

    async def submit(
        self,
        kind: SubmissionKind,
        profile: SubmitterProfile,
        payload: PostPayload,
        *,
        guest: GuestDetails | None = None,
        sponsorship: SponsorshipDetails | None = None,
        owner: Authenticated | None = None,
    ) -> Submission:
        """Validate and store a new submission in ``pending``."""
        policy = policy_for(kind)
        errors = policy.validate(profile, payload, guest, sponsorship)
        if errors:
            raise ValidationError("; ".join(errors), errors)

        if kind == SubmissionKind.GUEST and guest is None:
            guest = GuestDetails()
        submission = Submission(
            kind=kind,
            owner_id=owner.account_id if owner else None,
            submitter=profile.model_copy(update={"email": (profile.email or "").strip().lower()}),
            post=payload.model_copy(update={"content": sanitize_localized(payload.content)}),
            guest=guest,
            sponsorship=sponsorship,
        )
        await self._submissions.create(submission)
        logger.info(
            "%s received — id=%s owner=%s",
            policy.label,
            submission.id,
            submission.owner_id or "anonymous",
        )

        self._notify(
            email_templates.acknowledgment_email(
                to=submission.submitter.email or "",
                name=submission.submitter.name or "",
                noun=policy.noun,
                eta=policy.review_eta,
            )
        )
        return submission

    # --------------------------------------------------------------- transition

    async def transition_status(
        self,
        submission_id: str,
        new_status: SubmissionStatus,
        actor: Authenticated,
        *,
        admin_notes: str | None = None,
        rejection_reason: str | None = None,
        revision_notes: str | None = None,
        assigned_to: str | None = None,
        expected_kind: SubmissionKind | None = None,
    ) -> TransitionResult:
        """Move a submission along the review graph on behalf of a moderator."""
        self._require_privileged(actor)
        submission = await self._load(submission_id, expected_kind)
        policy = policy_for(submission.kind)
        new_status = SubmissionStatus(new_status)

        if new_status not in policy.review_targets(submission.status):
            raise ValidationError(
                f"Cannot move a {policy.noun} from {submission.status} to {new_status}"
            )
        if new_status == SubmissionStatus.REJECTED and not (rejection_reason or "").strip():
            raise ValidationError("A rejection reason is required")

        now = utcnow()
        update: dict[str, Any] = {"status": new_status}
        if admin_notes:
            update["admin_notes"] = admin_notes
        if assigned_to:
            update["assigned_to"] = assigned_to
        if new_status == SubmissionStatus.UNDER_REVIEW and submission.reviewed_at is None:
            update["reviewed_at"] = now
        if new_status == SubmissionStatus.APPROVED and submission.approved_at is None:
            update["approved_at"] = now
        if new_status == SubmissionStatus.REJECTED:
            update["rejection_reason"] = (rejection_reason or "").strip()
        if new_status == SubmissionStatus.NEEDS_REVISION and revision_notes:
            update["revision_notes"] = revision_notes

        old_status = submission.status
        updated = submission.model_copy(update=update)
        await self._submissions.update(updated, updated.id)
        logger.info(
            "%s status updated — id=%s old=%s new=%s by=%s",
            policy.label,
            updated.id,
            old_status,
            new_status,
            actor.account_id,
        )

        token = None
        email = updated.submitter.email or ""
        name = updated.submitter.name or ""
        if new_status == SubmissionStatus.APPROVED:
            token = self._tokens.issue(updated.id, updated.kind)
            self._notify(
                email_templates.approval_email(
                    to=email, name=name, noun=policy.noun, edit_url=self.edit_url(updated, token)
                )
            )
        elif new_status == SubmissionStatus.REJECTED:
            self._notify(
                email_templates.rejection_email(
                    to=email, name=name, noun=policy.noun, reason=updated.rejection_reason or ""
                )
            )
        elif new_status == SubmissionStatus.NEEDS_REVISION:
            self._notify(
                email_templates.revision_email(
                    to=email,
                    name=name,
                    noun=policy.noun,
                    notes=updated.revision_notes or "",
                    submit_url=self.submit_url(updated.kind),
                )
            )
        return TransitionResult(submission=updated, edit_token=token)

    # ----------------------------------------------------------------- revision

    def _authorize_revision(self, submission: Submission, credential: Credential) -> str:
        """Return a label for the editing actor or raise ``AuthorizationError``."""
        if isinstance(credential, EditToken):
            account = credential.account
            if not self._tokens.verify(credential.raw, submission.id, submission.kind):
                # A moderator session is enough on its own; a stale token does not revoke it.
                if account is not None and account.is_privileged:
                    logger.info(
                        "Ignoring invalid edit token for privileged editor — id=%s by=%s",
                        submission.id,
                        account.account_id,
                    )
                    return account.account_id
                raise AuthorizationError("Invalid edit token")
            if (
                account is not None
                and submission.owner_id
                and account.account_id != submission.owner_id
                and not account.is_privileged
            ):
                raise AuthorizationError("Not allowed to edit this submission")
            return account.account_id if account else "edit-token"
        if isinstance(credential, Authenticated) and credential.is_privileged:
            return credential.account_id
        raise AuthorizationError("Edit token required")

    async def revise_content(
        self,
        submission_id: str,
        content: LocalizedText,
        credential: Credential,
        *,
        expected_kind: SubmissionKind | None = None,
    ) -> Submission:
        """Replace the content of the locales supplied, sanitized."""
        submission = await self._load(submission_id, expected_kind)
        editor = self._authorize_revision(submission, credential)

        if submission.status not in EDITABLE_STATUSES:
            raise ValidationError(f"Content cannot be revised once a submission is {submission.status}")
        provided = content.present()
        if not provided:
            raise ValidationError("Content is required")
        errors = [msg for locale, text in provided.items() for msg in validate_content(locale, text)]
        if errors:
            raise ValidationError("; ".join(errors), errors)

        merged = submission.post.content.model_copy(
            update={locale.value: sanitize_html(text) for locale, text in provided.items()}
        )
        updated = submission.model_copy(
            update={"post": submission.post.model_copy(update={"content": merged})}
        )
        await self._submissions.update(updated, updated.id)
        logger.info(
            "%s content revised — id=%s locales=%s by=%s",
            policy_for(updated.kind).label,
            updated.id,
            ",".join(sorted(locale.value for locale in provided)),
            editor,
        )
        return updated

    # ------------------------------------------------------------------ publish

    async def _unique_slugs(self, title: LocalizedText) -> LocalizedText:
        slugs: dict[str, str] = {}
        for locale, text in title.present().items():
            slugs[locale.value] = await generate_unique_slug(text, locale, self._posts.slug_exists)
        return LocalizedText(**slugs)

    def _build_post(
        self, submission: Submission, post_id: str, slug: LocalizedText, now: datetime
    ) -> Post:
        policy = policy_for(submission.kind)
        payload = submission.post.model_copy(deep=True)
        profile = submission.submitter
        content = self._policy_filter.apply_localized(payload.content, submission.kind)
        quality = submission.seo_review.quality_score

        post = Post(
            id=post_id,
            post_type=policy.post_type,
            status=PostStatus.PUBLISHED,
            title=payload.title,
            excerpt=payload.excerpt,
            content=content,
            category=payload.category,
            slug=slug,
            tags=payload.tags,
            featured_image=payload.featured_image,
            read_time=ReadTime(en=_read_minutes(content.en), bn=_read_minutes(content.bn)),
            source_submission_id=submission.id,
            published_at=now,
        )
        if submission.kind == SubmissionKind.GUEST:
            author = AuthorSnapshot(
                name=profile.name or "",
                email=profile.email,
                bio=profile.bio,
                website=profile.website,
                company=profile.company,
                social=profile.social.model_copy(),
                is_verified=profile.is_verified,
            )
            post.author = author
            post.guest_author = author.model_copy(deep=True)
            post.seo_safety = SeoSafety(quality_score=quality)
        else:
            sponsorship = submission.sponsorship
            post.author = AuthorSnapshot(
                name=profile.name or "",
                email=profile.email,
                website=profile.website,
                company=profile.company,
            )
            post.sponsorship = SponsorshipSnapshot(
                sponsor=profile.company or profile.name or "",
                sponsor_email=profile.email,
                sponsor_website=profile.website,
                sponsor_logo=profile.logo,
                sponsor_industry=profile.industry,
                is_disclosed=True,
                disclosure_text=sponsorship.disclosure_text.model_copy() if sponsorship else LocalizedText(),
                sponsored_at=now,
                duration=sponsorship.duration.value if sponsorship else None,
                placement=sponsorship.placement.value if sponsorship else None,
            )
            post.seo_safety = SeoSafety(
                is_sponsored=True,
                has_disclosure=True,
                disclosure_position="both",
                nofollow_links=True,
                quality_score=quality,
            )
        return post

    async def _write_post(self, submission: Submission, now: datetime) -> tuple[Post, bool]:
        """Create (or refresh a leftover) post. Returns the post and whether it is new."""
        post_id = post_id_for(submission)
        raw = await self._posts.read_raw(post_id)
        leftover = Post.model_validate(raw) if raw is not None else None
        slug = leftover.slug if leftover else await self._unique_slugs(submission.post.title)
        post = self._build_post(submission, post_id, slug, now)
        if leftover is not None:
            logger.info("Reusing post from an earlier publish attempt — post=%s", post_id)
            post.created_at = leftover.created_at
            return await self._posts.update(post, post_id), False
        try:
            return await self._posts.create(post), True
        except CosmosHttpResponseError as exc:
            if exc.status_code != HTTP_CONFLICT:
                raise
            logger.info("Post already created by a concurrent publish — post=%s", post_id)
            return post, False

    async def _compensate(self, post: Post, submission_id: str) -> None:
        """Delete a post this publish created unless the submission already points at it."""
        try:
            current = await self._submissions.get(submission_id, submission_id)
            if current is not None and current.published_post_id == post.id:
                return
            await self._posts.delete(post.id)
            logger.warning("Rolled back post after failed publish — post=%s", post.id)
        except Exception:
            logger.exception(
                "Rollback failed; orphan post left for reconciliation — post=%s submission=%s",
                post.id,
                submission_id,
            )

    async def publish(
        self,
        submission_id: str,
        actor: Authenticated,
        *,
        expected_kind: SubmissionKind | None = None,
    ) -> PublishResult:
        """Materialize an approved submission as a canonical post."""
        self._require_privileged(actor)
        loaded = await self._submissions.get_with_etag(submission_id)
        if loaded is None or (expected_kind and loaded[0].kind != expected_kind):
            raise NotFoundError(policy_for(expected_kind).label if expected_kind else "Submission")
        submission, etag = loaded
        policy = policy_for(submission.kind)
        if submission.status != SubmissionStatus.APPROVED:
            raise ValidationError("Only approved submissions can be published")

        now = utcnow()
        post, created = await self._write_post(submission, now)

        update: dict[str, Any] = {
            "status": SubmissionStatus.PUBLISHED,
            "published_post_id": post.id,
            "published_at": submission.published_at or now,
        }
        if submission.sponsorship is not None:
            update["expires_at"] = now + timedelta(days=submission.sponsorship.duration.days)
        published = submission.model_copy(update=update)

        try:
            stored = await self._submissions.replace_if_unmodified(published, etag)
        except Exception:
            if created:
                await self._compensate(post, submission.id)
            raise
        if stored is None:
            if created:
                await self._compensate(post, submission.id)
            raise ConflictError("Submission changed while publishing; reload and try again")

        logger.info(
            "%s published — id=%s post=%s by=%s",
            policy.label,
            submission.id,
            post.id,
            actor.account_id,
        )
        return PublishResult(submission=stored, post=post)

    # ------------------------------------------------------------- reads/admin

    async def get(self, submission_id: str, *, expected_kind: SubmissionKind | None = None) -> Submission:
        return await self._load(submission_id, expected_kind)

    async def list_submissions(self, criteria: SubmissionFilter) -> tuple[list[Submission], int]:
        return await self._submissions.list_page(criteria)

    async def get_published_post(self, locale: Locale, slug: str) -> Post:
        post = await self._posts.get_published_by_slug(locale, slug)
        if post is None:
            raise NotFoundError("Post")
        return post

    async def list_published_posts(self, criteria: PublishedPostFilter) -> tuple[list[Post], int]:
        return await self._posts.list_published(criteria)

    async def list_mine(
        self, owner: Authenticated, kind: SubmissionKind, *, page: int = 1, limit: int = 10
    ) -> tuple[list[Submission], int]:
        return await self._submissions.list_page(
            SubmissionFilter(kind=kind, owner_id=owner.account_id, page=page, limit=limit)
        )

    async def stats(self, kind: SubmissionKind) -> dict[str, Any]:
        """Status/tier/monthly breakdowns for the moderation dashboard."""
        status_rows = await self._submissions.status_breakdown(kind)
        counts = {row.get("key"): int(row.get("count", 0)) for row in status_rows}
        stats: dict[str, Any] = {
            "total_submissions": sum(counts.values()),
            "published_count": counts.get(SubmissionStatus.PUBLISHED.value, 0),
            "pending_count": counts.get(SubmissionStatus.PENDING.value, 0),
            "status_breakdown": status_rows,
            "monthly_trends": await self._submissions.monthly_counts(kind),
        }
        if kind == SubmissionKind.GUEST:
            stats["tier_breakdown"] = await self._submissions.tier_breakdown(kind)
        else:
            stats["total_budget"] = await self._submissions.total_budget(kind)
        return stats

    async def delete(
        self,
        submission_id: str,
        actor: Authenticated,
        *,
        expected_kind: SubmissionKind | None = None,
    ) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Insufficient role permissions")
        submission = await self._load(submission_id, expected_kind)
        if submission.status in (SubmissionStatus.PUBLISHED, SubmissionStatus.EXPIRED):
            raise ValidationError(f"Cannot delete a published {policy_for(submission.kind).noun}")
        await self._submissions.soft_delete(submission, submission.id)
        logger.info(
            "%s deleted — id=%s status=%s by=%s",
            policy_for(submission.kind).label,
            submission.id,
            submission.status,
            actor.account_id,
        )

    # -------------------------------------------------------------- maintenance

    async def reconcile_publications(self, *, now: datetime | None = None) -> ReconcileReport:
        """Remove orphan posts and report published submissions without a post."""
        now = now or utcnow()
        report = ReconcileReport()

        for post in await self._posts.list_sourced():
            if post.source_submission_id is None or now - post.created_at < ORPHAN_GRACE:
                continue
            submission = await self._submissions.get(post.source_submission_id, post.source_submission_id)
            if submission is not None and submission.published_post_id == post.id:
                continue
            await self._posts.delete(post.id)
            report.removed_orphans.append(post.id)
            logger.warning(
                "Removed orphan post — post=%s submission=%s",
                post.id,
                post.source_submission_id,
            )

        for kind in SubmissionKind:
            for submission in await self._submissions.list_published(kind):
                post_id = submission.published_post_id
                if post_id and await self._posts.read_raw(post_id) is not None:
                    continue
                report.missing_posts.append(submission.id)
                logger.error(
                    "Published submission has no post — submission=%s post=%s",
                    submission.id,
                    post_id,
                )
        return report

    async def _archive_post(self, post_id: str | None) -> None:
        """Take a lapsed sponsored post off the public index."""
        if not post_id:
            return
        post = await self._posts.get(post_id, post_id)
        if post is None or post.status != PostStatus.PUBLISHED:
            return
        post.status = PostStatus.ARCHIVED
        await self._posts.update(post, post.id)
        logger.info("Archived expired sponsored post — post=%s", post_id)

    async def expire_sponsorships(self, *, now: datetime | None = None) -> list[str]:
        """Move lapsed sponsored placements from ``published`` to ``expired``."""
        now = now or utcnow()
        expired: list[str] = []
        for submission in await self._submissions.list_expirable(now):
            await self._archive_post(submission.published_post_id)
            updated = submission.model_copy(update={"status": SubmissionStatus.EXPIRED})
            await self._submissions.update(updated, updated.id)
            expired.append(updated.id)
            logger.info("Sponsorship expired — id=%s", updated.id)
        return expired
