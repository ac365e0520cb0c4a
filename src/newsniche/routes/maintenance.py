"""Maintenance routes — on-demand reconciliation and sponsorship expiry."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Request

from newsniche.auth.middleware import Admin
from newsniche.routes.submissions import envelope

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])

logger = logging.getLogger(__name__)


@router.post("/reconcile")
async def reconcile(request: Request, actor: Admin) -> dict[str, Any]:
    """Remove orphan posts and report published submissions without a post."""
    report = await request.app.state.workflow.reconcile_publications()
    logger.info(
        "Reconciliation requested — by=%s orphans_removed=%d missing_posts=%d",
        actor.account_id,
        len(report.removed_orphans),
        len(report.missing_posts),
    )
    return envelope(asdict(report))


@router.post("/expire")
async def expire(request: Request, actor: Admin) -> dict[str, Any]:
    """Expire sponsored placements whose duration has run out."""
    expired = await request.app.state.workflow.expire_sponsorships()
    logger.info("Expiry requested — by=%s expired=%d", actor.account_id, len(expired))
    return envelope({"expired": expired})
