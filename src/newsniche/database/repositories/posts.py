"""Repository for the posts container (partitioned by /id)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from newsniche.database.repositories.base import BaseRepository
from newsniche.models.base import Locale
from newsniche.models.post import Post, PostStatus, PostType

_ACTIVE = "NOT IS_DEFINED(c.deleted_at)"


@dataclass
class PublishedPostFilter:
    """Listing criteria for the public post index of one locale."""

    locale: Locale
    post_type: PostType | None = None
    category: str | None = None
    search: str | None = None
    page: int = 1
    limit: int = 10

    def where(self) -> tuple[str, list[dict[str, Any]]]:
        # Locale is an enum, so interpolating its value into the path is safe.
        lang = Locale(self.locale).value
        clauses = ["c.status = @status", _ACTIVE, f"IS_DEFINED(c.slug.{lang})"]
        params: list[dict[str, Any]] = [{"name": "@status", "value": PostStatus.PUBLISHED.value}]
        if self.post_type is not None:
            clauses.append("c.post_type = @post_type")
            params.append({"name": "@post_type", "value": self.post_type.value})
        if self.category:
            clauses.append(f"CONTAINS(c.category.{lang}, @category, true)")
            params.append({"name": "@category", "value": self.category})
        if self.search:
            clauses.append(
                f"(CONTAINS(c.title.{lang}, @search, true)"
                f" OR CONTAINS(c.excerpt.{lang}, @search, true)"
                f" OR CONTAINS(c.content.{lang}, @search, true))"
            )
            params.append({"name": "@search", "value": self.search})
        return " AND ".join(clauses), params


class PostRepository(BaseRepository[Post]):
    """Provide data access for canonical posts."""

    container_name = "posts"
    model_class = Post

    async def slug_exists(self, locale: Locale, slug: str) -> bool:
        """Return True if any post, deleted or not, already uses the slug."""
        total = await self.count(
            f"c.slug.{Locale(locale).value} = @slug",
            [{"name": "@slug", "value": slug}],
        )
        return total > 0

    async def get_published_by_slug(self, locale: Locale, slug: str) -> Post | None:
        """Fetch the live post served at ``slug`` in ``locale``."""
        posts = await self.query(
            f"SELECT * FROM c WHERE c.slug.{Locale(locale).value} = @slug"
            f" AND c.status = @status AND {_ACTIVE}",
            [
                {"name": "@slug", "value": slug},
                {"name": "@status", "value": PostStatus.PUBLISHED.value},
            ],
        )
        return posts[0] if posts else None

    async def list_published(self, criteria: PublishedPostFilter) -> tuple[list[Post], int]:
        """Return one page of live posts, newest first, plus the total count."""
        where, params = criteria.where()
        page = max(criteria.page, 1)
        limit = max(min(criteria.limit, 50), 1)
        items = await self.query(
            f"SELECT * FROM c WHERE {where} ORDER BY c.published_at DESC"
            " OFFSET @offset LIMIT @limit",
            [
                *params,
                {"name": "@offset", "value": (page - 1) * limit},
                {"name": "@limit", "value": limit},
            ],
        )
        total = await self.count(where, params)
        return items, total

    async def get_by_source_submission(self, submission_id: str) -> Post | None:
        """Fetch the active post materialized from a submission, if any."""
        posts = await self.query(
            "SELECT * FROM c WHERE c.source_submission_id = @submission_id"
            f" AND {_ACTIVE}",
            [{"name": "@submission_id", "value": submission_id}],
        )
        return posts[0] if posts else None

    async def list_sourced(self) -> list[Post]:
        """Fetch every active post that originated from a submission."""
        return await self.query(
            f"SELECT * FROM c WHERE IS_DEFINED(c.source_submission_id) AND {_ACTIVE}",
        )
