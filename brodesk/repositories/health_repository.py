from brodesk.core.db import probe_ticket_store
from brodesk.models.schemas.health import StoreHealth


class HealthRepository:
    def check_store(self, database_url: str) -> StoreHealth:
        connected, ticket_count, error_message = probe_ticket_store(database_url)
        return StoreHealth(
            connected=connected,
            ticket_count=ticket_count,
            message=None if connected else error_message,
        )
