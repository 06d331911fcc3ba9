from datetime import datetime

from pydantic import BaseModel


class CommentCreateRequest(BaseModel):
    message: str
    is_internal: bool = False


class CommentRead(BaseModel):
    id: str
    ticket_id: str
    author_id: str
    author_name: str | None = None
    message: str
    is_internal: bool
    created_at: datetime


class CommentDataResponse(BaseModel):
    data: CommentRead


class CommentListResponse(BaseModel):
    data: list[CommentRead]
