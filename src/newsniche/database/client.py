"""Async Cosmos DB client initialization."""

from __future__ import annotations

import logging

from azure.cosmos import PartitionKey
from azure.cosmos.aio import CosmosClient as AzureCosmosClient
from azure.cosmos.aio import DatabaseProxy

from newsniche.config import CosmosConfig

logger = logging.getLogger(__name__)

# Every container is partitioned by document id.
CONTAINERS = ("submissions", "posts")


class CosmosClient:
    """Manages the async Cosmos DB client and database reference."""

    def __init__(self, config: CosmosConfig) -> None:
        self._config = config
        self._client: AzureCosmosClient | None = None
        self._database: DatabaseProxy | None = None

    async def initialize(self, *, create_containers: bool = False) -> None:
        """Create the client and obtain a database reference."""
        if not self._config.endpoint:
            msg = "COSMOS_ENDPOINT is not set — add it to .env"
            raise ConnectionError(msg)
        self._client = AzureCosmosClient(self._config.endpoint, credential=self._config.key)
        if create_containers:
            self._database = await self._client.create_database_if_not_exists(
                self._config.database
            )
            for name in CONTAINERS:
                await self._database.create_container_if_not_exists(
                    id=name, partition_key=PartitionKey(path="/id")
                )
            logger.info("Cosmos containers ensured — database=%s", self._config.database)
        else:
            self._database = self._client.get_database_client(self._config.database)

    async def close(self) -> None:
        """Close the underlying client."""
        if self._client:
            await self._client.close()
            self._client = None
            self._database = None

    @property
    def database(self) -> DatabaseProxy:
        if self._database is None:
            raise RuntimeError("CosmosClient not initialized — call initialize() first")
        return self._database
