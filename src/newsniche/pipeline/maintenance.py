"""Periodic maintenance loop — expires sponsorships and reconciles publications."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from newsniche.services.workflow import SubmissionWorkflow

logger = logging.getLogger(__name__)


class MaintenanceLoop:
    """Runs workflow housekeeping on a fixed interval.

    Started from the FastAPI lifespan when ``MAINTENANCE_INTERVAL_SECONDS`` is
    positive. Both jobs are idempotent, so several replicas may run it.
    """

    def __init__(self, workflow: SubmissionWorkflow, interval_seconds: float) -> None:
        self._workflow = workflow
        self._interval = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the loop in a background task."""
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("Maintenance loop started — interval=%ss", self._interval)

    async def stop(self) -> None:
        """Stop the loop gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        logger.info("Maintenance loop stopped")

    async def run_once(self) -> None:
        """Run one expiry pass and one reconciliation pass."""
        expired = await self._workflow.expire_sponsorships()
        report = await self._workflow.reconcile_publications()
        if expired or report.removed_orphans or report.missing_posts:
            logger.info(
                "Maintenance pass — expired=%d orphans_removed=%d missing_posts=%d",
                len(expired),
                len(report.removed_orphans),
                len(report.missing_posts),
            )

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Error during maintenance pass")

            await asyncio.sleep(self._interval)
