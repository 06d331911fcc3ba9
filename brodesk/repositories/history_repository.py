from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from psycopg import AsyncConnection

from brodesk.core.database import get_connection, is_uuid, store_errors
from brodesk.models.entities import HistoryEntry


def _to_history_entry(row: dict[str, Any]) -> HistoryEntry:
    return HistoryEntry(
        id=row["id"],
        ticket_id=row["ticket_id"],
        field_name=row["field_name"],
        old_value=row["old_value"],
        new_value=row["new_value"],
        changed_by=row["changed_by"],
        changed_by_name=row["changed_by_name"],
        created_at=row["created_at"],
    )


class HistoryRepository:
    """Read side of the audit trail; rows are written by ``TicketRepository``."""

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

    async def list_by_ticket(
        self,
        ticket_id: str,
        connection: AsyncConnection | None = None,
    ) -> list[HistoryEntry]:
        if not is_uuid(ticket_id):
            return []
        query = """
            SELECT
                h.id::text AS id,
                h.ticket_id::text AS ticket_id,
                h.field_name,
                h.old_value,
                h.new_value,
                h.changed_by::text AS changed_by,
                p.full_name AS changed_by_name,
                h.created_at
            FROM ticket_history h
            LEFT JOIN profiles p ON p.id = h.changed_by
            WHERE h.ticket_id = %s
            ORDER BY h.created_at DESC, h.id DESC
        """
        async with store_errors("list_history"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (ticket_id,))
                    rows = await cursor.fetchall()
        return [_to_history_entry(row) for row in rows]
