"""Generic repository over a single Cosmos DB container partitioned by /id."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

from azure.core import MatchConditions
from azure.cosmos.exceptions import CosmosHttpResponseError

from newsniche.models.base import DocumentBase, utcnow

if TYPE_CHECKING:
    from azure.cosmos.aio import DatabaseProxy

T = TypeVar("T", bound=DocumentBase)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_PRECONDITION_FAILED = 412


class BaseRepository(Generic[T]):
    """CRUD helpers shared by every container repository."""

    container_name: ClassVar[str]
    model_class: type[T]

    def __init__(self, database: DatabaseProxy) -> None:
        self._container = database.get_container_client(self.container_name)

    def _dump(self, item: T) -> dict[str, Any]:
        return item.model_dump(mode="json", exclude_none=True)

    async def create(self, item: T) -> T:
        """Insert a new document. Raises on id conflict (409)."""
        await self._container.create_item(body=self._dump(item))
        return item

    async def read_raw(self, item_id: str) -> dict[str, Any] | None:
        """Read the stored document including system fields, or None if absent."""
        try:
            return cast(
                "dict[str, Any]",
                await self._container.read_item(item=item_id, partition_key=item_id),
            )
        except CosmosHttpResponseError as exc:
            if exc.status_code == HTTP_NOT_FOUND:
                return None
            raise

    async def get(self, item_id: str, partition_key: str) -> T | None:
        """Fetch an active (not soft-deleted) document by id."""
        try:
            data = cast(
                "dict[str, Any]",
                await self._container.read_item(item=item_id, partition_key=partition_key),
            )
        except CosmosHttpResponseError as exc:
            if exc.status_code == HTTP_NOT_FOUND:
                return None
            raise
        if data.get("deleted_at") is not None:
            return None
        return self.model_class.model_validate(data)

    async def update(self, item: T, partition_key: str) -> T:
        """Replace a document unconditionally (last write wins)."""
        item.updated_at = utcnow()
        await self._container.replace_item(item=item.id, body=self._dump(item))
        return item

    async def replace_if_unmodified(self, item: T, etag: str) -> T | None:
        """Replace a document only if its etag still matches.

        Returns None when another writer got there first.
        """
        item.updated_at = utcnow()
        try:
            await self._container.replace_item(
                item=item.id,
                body=self._dump(item),
                etag=etag,
                match_condition=MatchConditions.IfNotModified,
            )
        except CosmosHttpResponseError as exc:
            if exc.status_code == HTTP_PRECONDITION_FAILED:
                return None
            raise
        return item

    async def soft_delete(self, item: T, partition_key: str) -> T:
        item.deleted_at = utcnow()
        return await self.update(item, partition_key)

    async def delete(self, item_id: str) -> bool:
        """Hard-delete a document. Returns False if it was already gone."""
        try:
            await self._container.delete_item(item=item_id, partition_key=item_id)
        except CosmosHttpResponseError as exc:
            if exc.status_code == HTTP_NOT_FOUND:
                return False
            raise
        return True

    async def query(
        self, query: str, parameters: list[dict[str, Any]] | None = None
    ) -> list[T]:
        """Run a SQL query and validate each row into the model class."""
        return [
            self.model_class.model_validate(row)
            for row in await self.query_raw(query, parameters)
        ]

    async def query_raw(
        self, query: str, parameters: list[dict[str, Any]] | None = None
    ) -> list[Any]:
        """Run a SQL query and return the rows untouched (aggregates, projections)."""
        rows: list[Any] = []
        async for row in self._container.query_items(query=query, parameters=parameters or []):
            rows.append(row)
        return rows

    async def count(
        self, where: str = "", parameters: list[dict[str, Any]] | None = None
    ) -> int:
        """Count documents matching an optional WHERE clause body."""
        query = "SELECT VALUE COUNT(1) FROM c"
        if where:
            query = f"{query} WHERE {where}"
        rows = await self.query_raw(query, parameters)
        return int(rows[0]) if rows else 0
