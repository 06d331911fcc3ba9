from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from psycopg import AsyncConnection

from brodesk.core.database import get_connection, is_uuid, store_errors
from brodesk.models.entities import CategoryEntity, ProfileEntity, TeamEntity


class ReferenceRepository:
    """Categories, teams and profiles."""

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

    async def list_categories(
        self, connection: AsyncConnection | None = None
    ) -> list[CategoryEntity]:
        query = """
            SELECT id::text AS id, name, description, icon, team_id::text AS team_id
            FROM categories
            ORDER BY name ASC
        """
        async with store_errors("list_categories"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query)
                    rows = await cursor.fetchall()
        return [
            CategoryEntity(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                icon=row["icon"],
                team_id=row["team_id"],
            )
            for row in rows
        ]

    async def list_teams(self, connection: AsyncConnection | None = None) -> list[TeamEntity]:
        query = """
            SELECT id::text AS id, name, description, team_lead_user_id::text AS team_lead_user_id
            FROM teams
            ORDER BY name ASC
        """
        async with store_errors("list_teams"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query)
                    rows = await cursor.fetchall()
        return [
            TeamEntity(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                team_lead_user_id=row["team_lead_user_id"],
            )
            for row in rows
        ]

    async def get_profile(
        self,
        user_id: str,
        connection: AsyncConnection | None = None,
    ) -> ProfileEntity | None:
        if not is_uuid(user_id):
            return None
        query = "SELECT id::text AS id, full_name, email FROM profiles WHERE id = %s"
        async with store_errors("get_profile"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (user_id,))
                    row = await cursor.fetchone()
        if row is None:
            return None
        return ProfileEntity(id=row["id"], full_name=row["full_name"], email=row["email"])
