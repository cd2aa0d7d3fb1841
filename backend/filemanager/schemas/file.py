"""File request/response schemas."""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from filemanager.models.file_record import MAX_DURATION, MAX_SIZE


class FileResponse(BaseModel):
    id: int
    name: str
    path: str
    size: int
    recorded_at: datetime
    uuid: str = ""
    duration: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class FileUpdate(BaseModel):
    """Replacement values for a record. Unknown keys (id, timestamps) are ignored."""
    name: str = ""
    path: str = ""
    size: int = Field(default=0, ge=0, le=MAX_SIZE)
    recorded_at: datetime | None = None
    uuid: str = ""
    duration: int = Field(default=0, ge=0, le=MAX_DURATION)


class DeleteResponse(BaseModel):
    message: str
