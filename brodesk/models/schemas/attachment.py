from datetime import datetime

from pydantic import BaseModel


class AttachmentCreateRequest(BaseModel):
    file_name: str
    file_url: str
    file_type: str | None = None
    size_bytes: int | None = None


class AttachmentRead(BaseModel):
    id: str
    ticket_id: str
    file_name: str
    file_url: str
    file_type: str | None = None
    size_bytes: int | None = None
    uploaded_by: str
    created_at: datetime
    can_delete: bool = False


class AttachmentDataResponse(BaseModel):
    data: AttachmentRead


class AttachmentListResponse(BaseModel):
    data: list[AttachmentRead]
