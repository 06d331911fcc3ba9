from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from psycopg import AsyncConnection

from brodesk.core.database import get_connection, is_uuid, store_errors
from brodesk.models.entities import Actor


class ActorRepository:
    """Resolves an authenticated user id to a role and team."""

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

    async def get_actor(self, user_id: str, connection: AsyncConnection | None = None) -> Actor:
        if not is_uuid(user_id):
            return Actor(id=user_id)
        # Highest role wins when a user holds several.
        query = """
            SELECT role, team_id::text AS team_id
            FROM user_roles
            WHERE user_id = %s
            ORDER BY CASE role
                WHEN 'super_admin' THEN 0
                WHEN 'admin' THEN 1
                WHEN 'team_member' THEN 2
                ELSE 3
            END
            LIMIT 1
        """
        async with store_errors("get_actor"):
            async with self._use_connection(connection) as active_connection:
                async with active_connection.cursor() as cursor:
                    await cursor.execute(query, (user_id,))
                    row = await cursor.fetchone()
        if row is None:
            return Actor(id=user_id)
        return Actor(id=user_id, role=row["role"], team_id=row["team_id"])
