from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from psycopg import AsyncConnection

from brodesk.core.database import get_connection, is_uuid, store_errors
from brodesk.models.entities import AttachmentEntity

ATTACHMENT_COLUMNS = """
    id::text AS id,
    ticket_id::text AS ticket_id,
    file_name,
    file_url,
    file_type,
    size_bytes,
    uploaded_by::text AS uploaded_by,
    created_at
"""


def _to_attachment_entity(row: dict[str, Any]) -> AttachmentEntity:
    return AttachmentEntity(
        id=row["id"],
        ticket_id=row["ticket_id"],
        file_name=row["file_name"],
        file_url=row["file_url"],
        file_type=row["file_type"],
        size_bytes=row["size_bytes"],
        uploaded_by=row["uploaded_by"],
        created_at=row["created_at"],
    )


class AttachmentRepository:
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
        file_name: str,
        file_url: str,
        file_type: str | None,
        size_bytes: int | None,
        uploaded_by: str,
        connection: AsyncConnection | None = None,
    ) -> AttachmentEntity:
        query = f"""
            INSERT INTO ticket_attachments (
                ticket_id, file_name, file_url, file_type, size_bytes, uploaded_by
            )
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {ATTACHMENT_COLUMNS}
        """
        async with store_errors("create_attachment"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(
                        query,
                        (ticket_id, file_name, file_url, file_type, size_bytes, uploaded_by),
                    )
                    created = await cursor.fetchone()
        if created is None:
            raise RuntimeError("Failed to create attachment.")
        return _to_attachment_entity(created)

    async def get_by_id(
        self,
        attachment_id: str,
        connection: AsyncConnection | None = None,
    ) -> AttachmentEntity | None:
        if not is_uuid(attachment_id):
            return None
        query = f"SELECT {ATTACHMENT_COLUMNS} FROM ticket_attachments WHERE id = %s"
        async with store_errors("get_attachment"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (attachment_id,))
                    row = await cursor.fetchone()
        if row is None:
            return None
        return _to_attachment_entity(row)

    async def list_by_ticket(
        self,
        ticket_id: str,
        connection: AsyncConnection | None = None,
    ) -> list[AttachmentEntity]:
        if not is_uuid(ticket_id):
            return []
        query = f"""
            SELECT {ATTACHMENT_COLUMNS}
            FROM ticket_attachments
            WHERE ticket_id = %s
            ORDER BY created_at DESC
        """
        async with store_errors("list_attachments"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (ticket_id,))
                    rows = await cursor.fetchall()
        return [_to_attachment_entity(row) for row in rows]

    async def delete(self, attachment_id: str, connection: AsyncConnection | None = None) -> bool:
        query = "DELETE FROM ticket_attachments WHERE id = %s"
        async with store_errors("delete_attachment"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (attachment_id,))
                    return cursor.rowcount > 0
