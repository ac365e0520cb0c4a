"""Public post routes — the published index and single posts by slug."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Query, Request

from newsniche.database.repositories.posts import PublishedPostFilter
from newsniche.models.base import Locale
from newsniche.models.post import Post, PostType
from newsniche.routes.submissions import envelope

router = APIRouter(prefix="/api/blogs", tags=["posts"])

# Contact addresses are kept on the post for moderators, never served.
_PRIVATE_FIELDS: dict[str, Any] = {
    "deleted_at": True,
    "author": {"email"},
    "guest_author": {"email"},
    "sponsorship": {"sponsor_email"},
}


def public_view(post: Post) -> dict[str, Any]:
    return post.model_dump(mode="json", exclude_none=True, exclude=_PRIVATE_FIELDS)


@router.get("/{lang}")
async def list_posts(
    request: Request,
    lang: Locale,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
    category: str | None = None,
    search: str | None = None,
    post_type: PostType | None = None,
) -> dict[str, Any]:
    """Published posts in one locale, newest first."""
    criteria = PublishedPostFilter(
        locale=lang,
        post_type=post_type,
        category=category,
        search=search,
        page=page,
        limit=limit,
    )
    items, total = await request.app.state.workflow.list_published_posts(criteria)
    return envelope(
        {
            "items": [public_view(post) for post in items],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": (total + limit - 1) // limit,
            },
        }
    )


@router.get("/{lang}/slug/{slug}")
async def get_post(request: Request, lang: Locale, slug: str) -> dict[str, Any]:
    post = await request.app.state.workflow.get_published_post(lang, slug)
    return envelope({"post": public_view(post)})
