"""Repository for the submissions container (partitioned by /id)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from newsniche.database.repositories.base import BaseRepository
from newsniche.models.submission import Submission, SubmissionKind, SubmissionStatus

if TYPE_CHECKING:
    from datetime import datetime

_ACTIVE = "NOT IS_DEFINED(c.deleted_at)"

SORTABLE_FIELDS = {
    "submitted_at": "c.submitted_at",
    "created_at": "c.created_at",
    "updated_at": "c.updated_at",
    "status": "c.status",
    "budget": "c.sponsorship.budget",
}


@dataclass
class SubmissionFilter:
    """Listing criteria for the moderation queue."""

    kind: SubmissionKind
    status: SubmissionStatus | None = None
    tier: str | None = None
    search: str | None = None
    owner_id: str | None = None
    sort_by: str = "submitted_at"
    descending: bool = True
    page: int = 1
    limit: int = 10

    def where(self) -> tuple[str, list[dict[str, Any]]]:
        clauses = ["c.kind = @kind", _ACTIVE]
        params: list[dict[str, Any]] = [{"name": "@kind", "value": self.kind.value}]
        if self.status is not None:
            clauses.append("c.status = @status")
            params.append({"name": "@status", "value": self.status.value})
        if self.tier:
            clauses.append("c.guest.tier = @tier")
            params.append({"name": "@tier", "value": self.tier})
        if self.owner_id:
            clauses.append("c.owner_id = @owner_id")
            params.append({"name": "@owner_id", "value": self.owner_id})
        if self.search:
            clauses.append(
                "(CONTAINS(c.submitter.name, @search, true)"
                " OR CONTAINS(c.submitter.email, @search, true)"
                " OR CONTAINS(c.submitter.company, @search, true)"
                " OR CONTAINS(c.post.title.en, @search, true))"
            )
            params.append({"name": "@search", "value": self.search})
        return " AND ".join(clauses), params


class SubmissionRepository(BaseRepository[Submission]):
    """Provide data access for the submissions container."""

    container_name = "submissions"
    model_class = Submission

    async def get_with_etag(self, submission_id: str) -> tuple[Submission, str] | None:
        """Fetch an active submission together with its current etag."""
        data = await self.read_raw(submission_id)
        if data is None or data.get("deleted_at") is not None:
            return None
        return self.model_class.model_validate(data), str(data.get("_etag", ""))

    async def list_page(self, criteria: SubmissionFilter) -> tuple[list[Submission], int]:
        """Return one page of submissions plus the total matching count."""
        where, params = criteria.where()
        order_field = SORTABLE_FIELDS.get(criteria.sort_by, SORTABLE_FIELDS["submitted_at"])
        direction = "DESC" if criteria.descending else "ASC"
        page = max(criteria.page, 1)
        limit = max(min(criteria.limit, 100), 1)
        items = await self.query(
            f"SELECT * FROM c WHERE {where} ORDER BY {order_field} {direction}"
            " OFFSET @offset LIMIT @limit",
            [
                *params,
                {"name": "@offset", "value": (page - 1) * limit},
                {"name": "@limit", "value": limit},
            ],
        )
        total = await self.count(where, params)
        return items, total

    async def list_published(self, kind: SubmissionKind) -> list[Submission]:
        """Fetch every published submission of a kind."""
        return await self.query(
            f"SELECT * FROM c WHERE c.kind = @kind AND c.status = @status AND {_ACTIVE}",
            [
                {"name": "@kind", "value": kind.value},
                {"name": "@status", "value": SubmissionStatus.PUBLISHED.value},
            ],
        )

    async def list_expirable(self, now: datetime) -> list[Submission]:
        """Fetch published sponsored submissions whose placement has lapsed."""
        candidates = await self.query(
            "SELECT * FROM c WHERE c.kind = @kind AND c.status = @status"
            f" AND IS_DEFINED(c.expires_at) AND {_ACTIVE}",
            [
                {"name": "@kind", "value": SubmissionKind.SPONSORED.value},
                {"name": "@status", "value": SubmissionStatus.PUBLISHED.value},
            ],
        )
        # Stored timestamps mix "Z" and "+00:00" suffixes, so compare as datetimes.
        return [s for s in candidates if s.expires_at is not None and s.expires_at <= now]

    async def _group_counts(
        self, kind: SubmissionKind, field_expr: str, extra: str = ""
    ) -> list[dict[str, Any]]:
        select_extra = f", {extra}" if extra else ""
        return await self.query_raw(
            f"SELECT {field_expr} AS key, COUNT(1) AS count{select_extra} FROM c"
            f" WHERE c.kind = @kind AND {_ACTIVE} GROUP BY {field_expr}",
            [{"name": "@kind", "value": kind.value}],
        )

    async def status_breakdown(self, kind: SubmissionKind) -> list[dict[str, Any]]:
        """Count submissions per status (sponsored rows also sum budget)."""
        extra = "SUM(c.sponsorship.budget) AS total_budget" if kind == SubmissionKind.SPONSORED else ""
        return await self._group_counts(kind, "c.status", extra)

    async def tier_breakdown(self, kind: SubmissionKind) -> list[dict[str, Any]]:
        return await self._group_counts(kind, "c.guest.tier")

    async def monthly_counts(self, kind: SubmissionKind, months: int = 12) -> list[dict[str, Any]]:
        """Count submissions per ``YYYY-MM``, newest first."""
        rows = await self._group_counts(kind, "SUBSTRING(c.submitted_at, 0, 7)")
        rows.sort(key=lambda row: row.get("key") or "", reverse=True)
        return rows[:months]

    async def total_budget(self, kind: SubmissionKind) -> float:
        rows = await self.query_raw(
            f"SELECT VALUE SUM(c.sponsorship.budget) FROM c WHERE c.kind = @kind AND {_ACTIVE}",
            [{"name": "@kind", "value": kind.value}],
        )
        return float(rows[0]) if rows and rows[0] is not None else 0.0
