"""Submission routes — one router per submission kind.

Guest and sponsored submissions share every handler; the kind is bound when
the router is built and mounted at ``/api/guest-posts`` or
``/api/sponsored-posts``.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from newsniche.auth.middleware import (
    Admin,
    ContentCredential,
    Moderator,
    OptionalAccount,
    RequiredAccount,
)
from newsniche.database.repositories.submissions import SubmissionFilter
from newsniche.models.base import LocalizedText
from newsniche.models.submission import (
    GuestDetails,
    PostPayload,
    SponsorshipDetails,
    Submission,
    SubmissionKind,
    SubmissionStatus,
    SubmitterProfile,
)
from newsniche.services.kinds import policy_for
from newsniche.services.workflow import SubmissionWorkflow

logger = logging.getLogger(__name__)


class SubmitRequest(BaseModel):
    submitter: SubmitterProfile
    post: PostPayload
    guest: GuestDetails | None = None
    sponsorship: SponsorshipDetails | None = None


class StatusUpdateRequest(BaseModel):
    status: SubmissionStatus
    admin_notes: str | None = Field(default=None, max_length=1000)
    rejection_reason: str | None = Field(default=None, max_length=500)
    revision_notes: str | None = Field(default=None, max_length=1000)
    assigned_to: str | None = None


class ContentUpdateRequest(BaseModel):
    content: LocalizedText


def envelope(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Wrap a payload in the standard success response."""
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def _dump(submission: Submission) -> dict[str, Any]:
    return submission.model_dump(mode="json", exclude_none=True)


def _page(items: list[Submission], total: int, page: int, limit: int) -> dict[str, Any]:
    return {
        "items": [_dump(s) for s in items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit if limit else 0,
        },
    }


def _workflow(request: Request) -> SubmissionWorkflow:
    return request.app.state.workflow


def build_router(kind: SubmissionKind) -> APIRouter:
    """Build the router serving one submission kind."""
    policy = policy_for(kind)
    router = APIRouter(prefix=f"/api/{policy.edit_path}s", tags=[policy.edit_path])

    @router.post("/submit", status_code=201)
    async def submit(
        request: Request, body: SubmitRequest, account: OptionalAccount
    ) -> dict[str, Any]:
        """Accept a new submission from an anonymous or logged-in submitter."""
        submission = await _workflow(request).submit(
            kind,
            body.submitter,
            body.post,
            guest=body.guest,
            sponsorship=body.sponsorship,
            owner=account,
        )
        return envelope(
            {"id": submission.id, "status": submission.status},
            f"{policy.noun.capitalize()} submitted successfully. We will review it within"
            f" {policy.review_eta}.",
        )

    @router.get("/")
    async def list_submissions(
        request: Request,
        actor: Moderator,
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int, Query(ge=1, le=100)] = 10,
        status: SubmissionStatus | None = None,
        tier: str | None = None,
        search: str | None = None,
        sort_by: str = "submitted_at",
        sort_order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
    ) -> dict[str, Any]:
        """Moderation queue with filters, search and pagination."""
        criteria = SubmissionFilter(
            kind=kind,
            status=status,
            tier=tier,
            search=search,
            sort_by=sort_by,
            descending=sort_order == "desc",
            page=page,
            limit=limit,
        )
        items, total = await _workflow(request).list_submissions(criteria)
        return envelope(_page(items, total, page, limit))

    @router.get("/my")
    async def my_submissions(
        request: Request,
        account: RequiredAccount,
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int, Query(ge=1, le=100)] = 10,
    ) -> dict[str, Any]:
        """Submissions owned by the logged-in account."""
        items, total = await _workflow(request).list_mine(account, kind, page=page, limit=limit)
        return envelope(_page(items, total, page, limit))

    @router.get("/stats/overview")
    async def stats(request: Request, actor: Moderator) -> dict[str, Any]:
        return envelope(await _workflow(request).stats(kind))

    @router.get("/{submission_id}")
    async def get_submission(
        request: Request, submission_id: str, actor: Moderator
    ) -> dict[str, Any]:
        submission = await _workflow(request).get(submission_id, expected_kind=kind)
        return envelope(_dump(submission))

    @router.put("/{submission_id}/status")
    async def update_status(
        request: Request, submission_id: str, body: StatusUpdateRequest, actor: Moderator
    ) -> dict[str, Any]:
        """Move a submission through review."""
        result = await _workflow(request).transition_status(
            submission_id,
            body.status,
            actor,
            admin_notes=body.admin_notes,
            rejection_reason=body.rejection_reason,
            revision_notes=body.revision_notes,
            assigned_to=body.assigned_to,
            expected_kind=kind,
        )
        return envelope(_dump(result.submission), f"{policy.label} status updated successfully")

    @router.put("/{submission_id}/content")
    async def update_content(
        request: Request,
        submission_id: str,
        body: ContentUpdateRequest,
        credential: ContentCredential,
    ) -> dict[str, Any]:
        """Revise content with an edit-link token or a moderator session."""
        submission = await _workflow(request).revise_content(
            submission_id, body.content, credential, expected_kind=kind
        )
        return envelope(_dump(submission), "Content updated successfully")

    @router.post("/{submission_id}/publish")
    async def publish(request: Request, submission_id: str, actor: Moderator) -> dict[str, Any]:
        """Turn an approved submission into a published post."""
        result = await _workflow(request).publish(submission_id, actor, expected_kind=kind)
        return envelope(
            {
                "submission": _dump(result.submission),
                "post": result.post.model_dump(mode="json", exclude_none=True),
            },
            f"{policy.noun.capitalize()} published successfully",
        )

    @router.delete("/{submission_id}")
    async def delete(request: Request, submission_id: str, actor: Admin) -> dict[str, Any]:
        await _workflow(request).delete(submission_id, actor, expected_kind=kind)
        return envelope(message=f"{policy.label} deleted successfully")

    return router


guest_router = build_router(SubmissionKind.GUEST)
sponsored_router = build_router(SubmissionKind.SPONSORED)
