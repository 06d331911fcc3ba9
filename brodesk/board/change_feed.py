import asyncio
import json
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from psycopg import AsyncConnection, Error, sql

from brodesk.core.config import get_settings
from brodesk.core.database import get_database_url
from brodesk.core.errors import StoreError
from brodesk.domain.interfaces import ChangeEvent, ChangeHandler

logger = logging.getLogger(__name__)

_KINDS = {"INSERT": "insert", "UPDATE": "update", "DELETE": "delete"}


def parse_change_payload(payload: str) -> ChangeEvent | None:
    """Decode the JSON published by the ``tickets_notify_change`` trigger."""
    try:
        data: dict[str, Any] = json.loads(payload)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed change payload: %r", payload)
        return None

    kind = _KINDS.get(str(data.get("op", "")).upper())
    ticket_id = data.get("id")
    if kind is None or not ticket_id:
        logger.warning("Ignoring change payload without op/id: %r", payload)
        return None

    return ChangeEvent(
        kind=kind,  # type: ignore[arg-type]
        ticket_id=str(ticket_id),
        team_id=data.get("team_id"),
        reporter_id=data.get("reporter_id"),
        old_team_id=data.get("old_team_id"),
        old_reporter_id=data.get("old_reporter_id"),
    )


@dataclass(slots=True)
class Subscription:
    connection: AsyncConnection
    task: asyncio.Task[None]


class PostgresChangeFeed:
    """Change feed over PostgreSQL ``LISTEN/NOTIFY``.

    Each subscription holds its own autocommit connection for as long as the
    board is mounted.
    """

    def __init__(self, database_url: str | None = None, channel: str | None = None) -> None:
        self.database_url = database_url
        self.channel = channel or get_settings().change_feed_channel

    async def subscribe(self, on_event: ChangeHandler) -> Subscription:
        url = self.database_url or get_database_url()
        try:
            connection = await AsyncConnection.connect(url, autocommit=True)
            await connection.execute(sql.SQL("LISTEN {}").format(sql.Identifier(self.channel)))
        except Error as exc:
            raise StoreError(
                "Change feed is unavailable.", details={"channel": self.channel}
            ) from exc

        task = asyncio.create_task(self._pump(connection, on_event))
        logger.debug("Subscribed to change feed %s", self.channel)
        return Subscription(connection=connection, task=task)

    async def unsubscribe(self, handle: Subscription) -> None:
        handle.task.cancel()
        with suppress(asyncio.CancelledError):
            await handle.task
        await handle.connection.close()
        logger.debug("Unsubscribed from change feed %s", self.channel)

    async def _pump(self, connection: AsyncConnection, on_event: ChangeHandler) -> None:
        try:
            async for notify in connection.notifies():
                event = parse_change_payload(notify.payload)
                if event is None:
                    continue
                try:
                    await on_event(event)
                except Exception:
                    logger.exception("Change handler failed for ticket %s", event.ticket_id)
        except Error as exc:
            logger.error("Change feed %s stopped: %s", self.channel, exc)
