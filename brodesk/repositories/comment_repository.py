from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from psycopg import AsyncConnection

from brodesk.core.database import get_connection, is_uuid, store_errors
from brodesk.models.entities import CommentEntity


def _to_comment_entity(row: dict[str, Any]) -> CommentEntity:
    return CommentEntity(
        id=row["id"],
        ticket_id=row["ticket_id"],
        author_id=row["author_id"],
        author_name=row["author_name"],
        message=row["message"],
        is_internal=bool(row["is_internal"]),
        created_at=row["created_at"],
    )


class CommentRepository:
    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url

    @asynccontextmanager
    async def _use_connection(
        self, connection: AsyncConnection | None
    ) -> AsyncIterator[AsyncConnection]:
        if connection is not None:
            yield connection
            return
        async with get_connection(self.database_url) as managed:
            yield managed

    async def create(
        self,
        *,
        ticket_id: str,
        author_id: str,
        message: str,
        is_internal: bool = False,
        connection: AsyncConnection | None = None,
    ) -> CommentEntity:
        query = """
            WITH inserted AS (
                INSERT INTO ticket_comments (ticket_id, author_id, message, is_internal)
                VALUES (%s, %s, %s, %s)
                RETURNING id, ticket_id, author_id, message, is_internal, created_at
            )
            SELECT
                i.id::text AS id,
                i.ticket_id::text AS ticket_id,
                i.author_id::text AS author_id,
                p.full_name AS author_name,
                i.message,
                i.is_internal,
                i.created_at
            FROM inserted i
            LEFT JOIN profiles p ON p.id = i.author_id
        """
        async with store_errors("create_comment"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (ticket_id, author_id, message, is_internal))
                    created = await cursor.fetchone()
        if created is None:
            raise RuntimeError("Failed to create comment.")
        return _to_comment_entity(created)

    async def list_by_ticket(
        self,
        ticket_id: str,
        *,
        include_internal: bool,
        connection: AsyncConnection | None = None,
    ) -> list[CommentEntity]:
        if not is_uuid(ticket_id):
            return []
        internal_sql = "" if include_internal else "AND c.is_internal = FALSE"
        query = f"""
            SELECT
                c.id::text AS id,
                c.ticket_id::text AS ticket_id,
                c.author_id::text AS author_id,
                p.full_name AS author_name,
                c.message,
                c.is_internal,
                c.created_at
            FROM ticket_comments c
            LEFT JOIN profiles p ON p.id = c.author_id
            WHERE c.ticket_id = %s {internal_sql}
            ORDER BY c.created_at ASC
        """
        async with store_errors("list_comments"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (ticket_id,))
                    rows = await cursor.fetchall()
        return [_to_comment_entity(row) for row in rows]
