from psycopg import connect


def probe_ticket_store(
    database_url: str,
    timeout_seconds: int = 3,
) -> tuple[bool, int | None, str | None]:
    """Connect and count tickets; returns ``(connected, ticket_count, error)``."""
    try:
        with connect(database_url, connect_timeout=timeout_seconds) as connection:
            with connection.cursor() as cursor:
                cursor.execute("SELECT COUNT(1) FROM tickets")
                result = cursor.fetchone()
    except Exception as exc:
        return False, None, str(exc)
    if result is None:
        return False, None, "Ticket table probe returned no rows."
    return True, int(result[0]), None
