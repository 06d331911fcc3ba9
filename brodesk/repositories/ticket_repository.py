from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from psycopg import AsyncConnection, sql
from psycopg.errors import ForeignKeyViolation

from brodesk.core.database import get_connection, is_uuid, store_errors
from brodesk.core.errors import InputValidationError, NotFoundError
from brodesk.domain.lifecycle import UPDATABLE_FIELDS, audited_changes
from brodesk.domain.visibility import TicketScope
from brodesk.models.entities import TICKET_PRIORITIES, TicketEntity

TICKET_SELECT = """
    SELECT
        t.id::text AS id,
        t.ticket_number,
        t.title,
        t.description,
        t.location,
        t.category_id::text AS category_id,
        c.name AS category_name,
        t.priority,
        t.status,
        t.reporter_id::text AS reporter_id,
        rp.full_name AS reporter_name,
        rp.email AS reporter_email,
        t.is_anonymous,
        t.assigned_user_id::text AS assigned_user_id,
        ap.full_name AS assignee_name,
        t.team_id::text AS team_id,
        tm.name AS team_name,
        t.created_at,
        t.updated_at,
        t.resolved_at,
        t.resolved_by::text AS resolved_by,
        t.closed_at,
        t.sentiment_score
    FROM tickets t
    LEFT JOIN categories c ON c.id = t.category_id
    LEFT JOIN profiles rp ON rp.id = t.reporter_id
    LEFT JOIN profiles ap ON ap.id = t.assigned_user_id
    LEFT JOIN teams tm ON tm.id = t.team_id
"""

REQUIRED_INSERT_FIELDS: tuple[str, ...] = ("title", "description", "category_id", "reporter_id")
REFERENCE_FIELDS: tuple[str, ...] = ("assigned_user_id", "team_id", "resolved_by")


def _to_ticket_entity(row: dict[str, Any]) -> TicketEntity:
    return TicketEntity(
        id=row["id"],
        ticket_number=row["ticket_number"],
        title=row["title"],
        description=row["description"],
        location=row["location"],
        category_id=row["category_id"],
        category_name=row["category_name"],
        priority=row["priority"],
        status=row["status"],
        reporter_id=row["reporter_id"],
        reporter_name=row["reporter_name"],
        reporter_email=row["reporter_email"],
        is_anonymous=bool(row["is_anonymous"]),
        assigned_user_id=row["assigned_user_id"],
        assignee_name=row["assignee_name"],
        team_id=row["team_id"],
        team_name=row["team_name"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        resolved_at=row["resolved_at"],
        resolved_by=row["resolved_by"],
        closed_at=row["closed_at"],
        sentiment_score=row["sentiment_score"],
    )


def _scope_clause(scope: TicketScope) -> tuple[str | None, list[Any]]:
    if scope.kind == "all":
        return None, []
    if scope.kind == "team":
        return "t.team_id = %s", [scope.value]
    return "t.reporter_id = %s", [scope.value]


class TicketRepository:
    """PostgreSQL-backed ticket store.

    Every field update writes its audit rows in the same transaction, so a
    status, priority or assignment change is never persisted without its
    history entry.
    """

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

    async def query_tickets(
        self,
        scope: TicketScope,
        *,
        status: str | None = None,
        priority: str | None = None,
        q: str | None = None,
        limit: int | None = None,
        connection: AsyncConnection | None = None,
    ) -> list[TicketEntity]:
        where_clauses: list[str] = []
        params: list[Any] = []

        scope_sql, scope_params = _scope_clause(scope)
        if scope_sql is not None:
            if scope.value is None or not is_uuid(scope.value):
                return []
            where_clauses.append(scope_sql)
            params.extend(scope_params)

        if status is not None:
            where_clauses.append("t.status = %s")
            params.append(status)

        if priority is not None:
            where_clauses.append("t.priority = %s")
            params.append(priority)

        if q:
            where_clauses.append("(t.title ILIKE %s OR t.ticket_number ILIKE %s)")
            params.extend([f"%{q}%", f"%{q}%"])

        where_sql = ""
        if where_clauses:
            where_sql = "WHERE " + " AND ".join(where_clauses)

        limit_sql = ""
        if limit is not None:
            limit_sql = "LIMIT %s"
            params.append(limit)

        query = f"""
            {TICKET_SELECT}
            {where_sql}
            ORDER BY t.created_at DESC, t.ticket_number DESC
            {limit_sql}
        """
        async with store_errors("query_tickets"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, params)
                    rows = await cursor.fetchall()
        return [_to_ticket_entity(row) for row in rows]

    async def get_ticket(
        self,
        ticket_id: str,
        connection: AsyncConnection | None = None,
    ) -> TicketEntity | None:
        if not is_uuid(ticket_id):
            return None
        query = f"{TICKET_SELECT} WHERE t.id = %s"
        async with store_errors("get_ticket"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (ticket_id,))
                    row = await cursor.fetchone()
        if row is None:
            return None
        return _to_ticket_entity(row)

    async def list_recent_open(
        self,
        *,
        limit: int = 50,
        connection: AsyncConnection | None = None,
    ) -> list[TicketEntity]:
        query = f"""
            {TICKET_SELECT}
            WHERE t.status <> 'closed'
            ORDER BY t.created_at DESC
            LIMIT %s
        """
        async with store_errors("list_recent_open"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (limit,))
                    rows = await cursor.fetchall()
        return [_to_ticket_entity(row) for row in rows]

    async def update_ticket_fields(
        self,
        ticket_id: str,
        fields: Mapping[str, Any],
        *,
        changed_by: str,
        connection: AsyncConnection | None = None,
    ) -> TicketEntity:
        unknown = sorted(set(fields) - UPDATABLE_FIELDS)
        if unknown:
            raise InputValidationError(
                "Some ticket fields cannot be updated.",
                details={"fields": unknown},
            )
        malformed = {
            name: fields[name]
            for name in REFERENCE_FIELDS
            if fields.get(name) is not None and not is_uuid(str(fields[name]))
        }
        if malformed:
            raise InputValidationError(
                "Assigned user or team does not exist.",
                details=malformed,
                code="INVALID_REFERENCE",
            )
        if not is_uuid(ticket_id):
            raise NotFoundError(
                "Ticket not found.", details={"ticket_id": ticket_id}, code="TICKET_NOT_FOUND"
            )

        lock_query = """
            SELECT
                status,
                priority,
                assigned_user_id::text AS assigned_user_id,
                team_id::text AS team_id
            FROM tickets
            WHERE id = %s
            FOR UPDATE
        """
        history_query = """
            INSERT INTO ticket_history (ticket_id, field_name, old_value, new_value, changed_by)
            VALUES (%s, %s, %s, %s, %s)
        """
        async with store_errors("update_ticket_fields"):
            async with self._use_connection(connection) as active_connection:
                try:
                    async with active_connection.transaction():
                        async with active_connection.cursor() as cursor:
                            await cursor.execute(lock_query, (ticket_id,))
                            current = await cursor.fetchone()
                            if current is None:
                                raise NotFoundError(
                                    "Ticket not found.",
                                    details={"ticket_id": ticket_id},
                                    code="TICKET_NOT_FOUND",
                                )

                            if fields:
                                assignments = sql.SQL(", ").join(
                                    sql.SQL("{} = %s").format(sql.Identifier(name))
                                    for name in fields
                                )
                                update_query = sql.SQL(
                                    "UPDATE tickets SET {}, updated_at = NOW() WHERE id = %s"
                                ).format(assignments)
                                await cursor.execute(update_query, [*fields.values(), ticket_id])

                                changes = audited_changes(current, fields)
                                if changes:
                                    await cursor.executemany(
                                        history_query,
                                        [
                                            (ticket_id, name, old_value, new_value, changed_by)
                                            for name, old_value, new_value in changes
                                        ],
                                    )
                except ForeignKeyViolation as exc:
                    raise InputValidationError(
                        "Assigned user or team does not exist.",
                        details={name: fields[name] for name in REFERENCE_FIELDS if name in fields},
                        code="INVALID_REFERENCE",
                    ) from exc

                ticket = await self.get_ticket(ticket_id, connection=active_connection)
        if ticket is None:
            raise NotFoundError(
                "Ticket not found.", details={"ticket_id": ticket_id}, code="TICKET_NOT_FOUND"
            )
        return ticket

    async def insert_ticket(
        self,
        fields: Mapping[str, Any],
        connection: AsyncConnection | None = None,
    ) -> TicketEntity:
        missing = [
            name for name in REQUIRED_INSERT_FIELDS if not str(fields.get(name) or "").strip()
        ]
        if missing:
            raise InputValidationError(
                "Some required ticket fields are missing.",
                details={"missing_fields": missing},
            )
        priority = fields.get("priority") or "medium"
        if priority not in TICKET_PRIORITIES:
            raise InputValidationError(
                "Unknown ticket priority.",
                details={"priority": priority},
                code="INVALID_PRIORITY",
            )
        if not is_uuid(fields["category_id"]):
            raise InputValidationError(
                "Category does not exist.",
                details={"category_id": fields["category_id"]},
                code="INVALID_CATEGORY",
            )

        query = """
            INSERT INTO tickets (
                title,
                description,
                location,
                category_id,
                priority,
                reporter_id,
                is_anonymous,
                team_id,
                sentiment_score
            )
            VALUES (
                %s, %s, %s, %s, %s, %s, %s,
                (SELECT team_id FROM categories WHERE id = %s),
                %s
            )
            RETURNING id::text AS id
        """
        params = (
            str(fields["title"]).strip(),
            str(fields["description"]).strip(),
            fields.get("location"),
            fields["category_id"],
            priority,
            fields["reporter_id"],
            bool(fields.get("is_anonymous", False)),
            fields["category_id"],
            fields.get("sentiment_score"),
        )
        async with store_errors("insert_ticket"):
            async with self._use_connection(connection) as active_connection:
                try:
                    async with active_connection.transaction():
                        async with active_connection.cursor() as cursor:
                            await cursor.execute(query, params)
                            created = await cursor.fetchone()
                except ForeignKeyViolation as exc:
                    raise InputValidationError(
                        "Category or reporter does not exist.",
                        details={
                            "category_id": fields["category_id"],
                            "reporter_id": fields["reporter_id"],
                        },
                        code="INVALID_REFERENCE",
                    ) from exc
                if created is None:
                    raise RuntimeError("Failed to create ticket.")
                ticket = await self.get_ticket(created["id"], connection=active_connection)
        if ticket is None:
            raise RuntimeError("Failed to load created ticket.")
        return ticket
