from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


class StoreHealth(BaseModel):
    connected: bool
    ticket_count: int | None = None
    message: str | None = None


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    service: str = "brodesk-backend"
    environment: str
    store: StoreHealth
    change_feed_channel: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
