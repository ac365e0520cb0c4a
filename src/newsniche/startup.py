"""Component construction for the web app lifespan."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from newsniche.database.client import CosmosClient
from newsniche.database.repositories import PostRepository, SubmissionRepository
from newsniche.services.content_policy import ContentPolicyFilter
from newsniche.services.edit_tokens import EditTokenService
from newsniche.services.notifications import BackgroundNotifier, SmtpEmailSender
from newsniche.services.workflow import SubmissionWorkflow

if TYPE_CHECKING:
    from newsniche.config import Settings

logger = logging.getLogger(__name__)


async def init_database(settings: Settings) -> CosmosClient:
    """Connect to Cosmos DB, creating containers when running locally."""
    cosmos = CosmosClient(settings.cosmos)
    await cosmos.initialize(create_containers=settings.app.is_development)
    logger.info("Cosmos DB connected — database=%s", settings.cosmos.database)
    return cosmos


def init_workflow(
    settings: Settings, cosmos: CosmosClient, *, secret_key: str
) -> tuple[SubmissionWorkflow, BackgroundNotifier]:
    """Build the workflow and the notifier it dispatches through."""
    notifier = BackgroundNotifier(SmtpEmailSender(settings.smtp))
    workflow = SubmissionWorkflow(
        SubmissionRepository(cosmos.database),
        PostRepository(cosmos.database),
        ContentPolicyFilter(settings.policy.blocked_hosts),
        EditTokenService(secret_key, ttl=settings.policy.edit_token_ttl),
        notifier,
        frontend_url=settings.app.frontend_url,
    )
    logger.info(
        "Submission workflow ready — blocked_hosts=%s",
        ",".join(settings.policy.blocked_hosts),
    )
    return workflow, notifier
