"""Repository modules for each Cosmos DB container."""

from newsniche.database.repositories.posts import PostRepository
from newsniche.database.repositories.submissions import SubmissionFilter, SubmissionRepository

__all__ = [
    "PostRepository",
    "SubmissionFilter",
    "SubmissionRepository",
]
