"""In-memory stand-ins for the Cosmos repositories used by workflow tests."""

from __future__ import annotations

from typing import Any

import pytest
from azure.cosmos.exceptions import CosmosHttpResponseError

from newsniche.auth.credentials import Authenticated, Role
from newsniche.models.base import utcnow
from newsniche.models.post import Post, PostStatus
from newsniche.models.submission import Submission, SubmissionStatus
from newsniche.services.content_policy import ContentPolicyFilter
from newsniche.services.edit_tokens import EditTokenService
from newsniche.services.workflow import SubmissionWorkflow

SECRET = "workflow-test-secret-0123456789abcdef"


class FakeSubmissionRepository:
    """Keeps JSON documents with a changing etag, like the real container."""

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.fail_next_replace: Exception | None = None
        self._version = 0

    def _store(self, item: Submission) -> None:
        self._version += 1
        data = item.model_dump(mode="json", exclude_none=True)
        data["_etag"] = f"etag-{self._version}"
        self.docs[item.id] = data

    def touch(self, submission_id: str) -> None:
        """Simulate a concurrent writer bumping the etag."""
        self._version += 1
        self.docs[submission_id]["_etag"] = f"etag-{self._version}"

    def _active(self) -> list[Submission]:
        return [
            Submission.model_validate(d) for d in self.docs.values() if not d.get("deleted_at")
        ]

    async def create(self, item: Submission) -> Submission:
        self._store(item)
        return item

    async def get(self, item_id: str, partition_key: str) -> Submission | None:
        data = self.docs.get(item_id)
        if data is None or data.get("deleted_at"):
            return None
        return Submission.model_validate(data)

    async def get_with_etag(self, submission_id: str) -> tuple[Submission, str] | None:
        submission = await self.get(submission_id, submission_id)
        if submission is None:
            return None
        return submission, self.docs[submission_id]["_etag"]

    async def update(self, item: Submission, partition_key: str) -> Submission:
        item.updated_at = utcnow()
        self._store(item)
        return item

    async def replace_if_unmodified(self, item: Submission, etag: str) -> Submission | None:
        if self.fail_next_replace is not None:
            exc, self.fail_next_replace = self.fail_next_replace, None
            raise exc
        if self.docs[item.id]["_etag"] != etag:
            return None
        return await self.update(item, item.id)

    async def soft_delete(self, item: Submission, partition_key: str) -> Submission:
        item.deleted_at = utcnow()
        return await self.update(item, partition_key)

    async def list_page(self, criteria) -> tuple[list[Submission], int]:
        items = [
            s
            for s in self._active()
            if s.kind == criteria.kind
            and (criteria.status is None or s.status == criteria.status)
            and (criteria.owner_id is None or s.owner_id == criteria.owner_id)
        ]
        items.sort(key=lambda s: s.submitted_at, reverse=criteria.descending)
        start = (criteria.page - 1) * criteria.limit
        return items[start : start + criteria.limit], len(items)

    async def list_published(self, kind) -> list[Submission]:
        return [
            s for s in self._active() if s.kind == kind and s.status == SubmissionStatus.PUBLISHED
        ]

    async def list_expirable(self, now) -> list[Submission]:
        return [
            s
            for s in self._active()
            if s.status == SubmissionStatus.PUBLISHED
            and s.expires_at is not None
            and s.expires_at <= now
        ]

    async def status_breakdown(self, kind) -> list[dict[str, Any]]:
        counts: dict[str, int] = {}
        for s in self._active():
            if s.kind == kind:
                counts[s.status.value] = counts.get(s.status.value, 0) + 1
        return [{"key": key, "count": count} for key, count in counts.items()]

    async def tier_breakdown(self, kind) -> list[dict[str, Any]]:
        counts: dict[str, int] = {}
        for s in self._active():
            if s.kind == kind and s.guest is not None:
                counts[s.guest.tier.value] = counts.get(s.guest.tier.value, 0) + 1
        return [{"key": key, "count": count} for key, count in counts.items()]

    async def monthly_counts(self, kind, months: int = 12) -> list[dict[str, Any]]:
        counts: dict[str, int] = {}
        for s in self._active():
            if s.kind == kind:
                key = s.submitted_at.strftime("%Y-%m")
                counts[key] = counts.get(key, 0) + 1
        return [{"key": key, "count": count} for key, count in sorted(counts.items(), reverse=True)]

    async def total_budget(self, kind) -> float:
        return float(
            sum(
                s.sponsorship.budget or 0
                for s in self._active()
                if s.kind == kind and s.sponsorship is not None
            )
        )


class FakePostRepository:
    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.fail_delete = False

    def all(self) -> list[Post]:
        return [Post.model_validate(d) for d in self.docs.values()]

    async def create(self, item: Post) -> Post:
        if item.id in self.docs:
            raise CosmosHttpResponseError(status_code=409, message="Conflict")
        self.docs[item.id] = item.model_dump(mode="json", exclude_none=True)
        return item

    async def read_raw(self, item_id: str) -> dict[str, Any] | None:
        data = self.docs.get(item_id)
        return dict(data) if data is not None else None

    async def get(self, item_id: str, partition_key: str) -> Post | None:
        data = self.docs.get(item_id)
        if data is None or data.get("deleted_at"):
            return None
        return Post.model_validate(data)

    async def update(self, item: Post, partition_key: str) -> Post:
        item.updated_at = utcnow()
        self.docs[item.id] = item.model_dump(mode="json", exclude_none=True)
        return item

    async def delete(self, item_id: str) -> bool:
        if self.fail_delete:
            raise RuntimeError("delete failed")
        return self.docs.pop(item_id, None) is not None

    async def slug_exists(self, locale, slug: str) -> bool:
        return any(d.get("slug", {}).get(locale.value) == slug for d in self.docs.values())

    async def list_sourced(self) -> list[Post]:
        return [
            Post.model_validate(d)
            for d in self.docs.values()
            if d.get("source_submission_id") and not d.get("deleted_at")
        ]

    def _live(self, locale) -> list[Post]:
        return [
            Post.model_validate(d)
            for d in self.docs.values()
            if d.get("status") == PostStatus.PUBLISHED
            and not d.get("deleted_at")
            and d.get("slug", {}).get(locale.value)
        ]

    async def get_published_by_slug(self, locale, slug: str) -> Post | None:
        return next((p for p in self._live(locale) if p.slug.get(locale) == slug), None)

    async def list_published(self, criteria) -> tuple[list[Post], int]:
        posts = [
            p
            for p in self._live(criteria.locale)
            if criteria.post_type is None or p.post_type == criteria.post_type
        ]
        posts.sort(key=lambda p: p.published_at, reverse=True)
        start = (criteria.page - 1) * criteria.limit
        return posts[start : start + criteria.limit], len(posts)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent = []

    def dispatch(self, email) -> None:
        self.sent.append(email)


class BrokenNotifier:
    def dispatch(self, email) -> None:
        raise RuntimeError("no event loop for email")


@pytest.fixture
def submissions() -> FakeSubmissionRepository:
    return FakeSubmissionRepository()


@pytest.fixture
def posts() -> FakePostRepository:
    return FakePostRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def tokens() -> EditTokenService:
    return EditTokenService(SECRET)


@pytest.fixture
def workflow(submissions, posts, notifier, tokens) -> SubmissionWorkflow:
    return SubmissionWorkflow(
        submissions,
        posts,
        ContentPolicyFilter(["competitor1.com", "competitor2.com"]),
        tokens,
        notifier,
        frontend_url="http://localhost:3000/",
    )


@pytest.fixture
def moderator() -> Authenticated:
    return Authenticated(account_id="mod-1", role=Role.MODERATOR)


@pytest.fixture
def admin() -> Authenticated:
    return Authenticated(account_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def writer() -> Authenticated:
    return Authenticated(account_id="user-1", role=Role.USER)


@pytest.fixture
def quiet_workflow(submissions, posts, tokens) -> SubmissionWorkflow:
    """A workflow whose notifier cannot even queue an email."""
    return SubmissionWorkflow(
        submissions,
        posts,
        ContentPolicyFilter(["competitor1.com"]),
        tokens,
        BrokenNotifier(),
    )
