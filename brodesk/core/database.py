import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from psycopg import AsyncConnection, Error
from psycopg.rows import dict_row

from brodesk.core.config import get_settings
from brodesk.core.errors import StoreError

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    return get_settings().database_url


@asynccontextmanager
async def get_connection(database_url: str | None = None) -> AsyncIterator[AsyncConnection]:
    url = database_url or get_database_url()
    async with await AsyncConnection.connect(url, row_factory=dict_row) as connection:
        yield connection


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """Translate driver failures raised inside the block into ``StoreError``."""
    try:
        yield
    except Error as exc:
        logger.warning("Ticket store failure during %s: %s", operation, exc)
        raise StoreError(details={"operation": operation}) from exc


def is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True
