from brodesk.core.config import Settings
from brodesk.models.schemas.health import HealthResponse
from brodesk.repositories.health_repository import HealthRepository


class HealthService:
    def __init__(self, repository: HealthRepository, settings: Settings) -> None:
        self.repository = repository
        self.settings = settings

    def get_health(self) -> HealthResponse:
        store_health = self.repository.check_store(self.settings.database_url)
        return HealthResponse(
            status="ok" if store_health.connected else "degraded",
            environment=self.settings.app_env,
            store=store_health,
            change_feed_channel=self.settings.change_feed_channel,
        )
