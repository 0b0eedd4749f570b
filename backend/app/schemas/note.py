from datetime import datetime

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    content: str = ""
    folder_id: str | None = None


class NoteUpdate(BaseModel):
    """Partial update. An explicit `folder_id: null` moves the note to root."""

    title: str | None = Field(default=None, max_length=255)
    content: str | None = None
    folder_id: str | None = None


class NoteResponse(BaseModel):
    id: str
    title: str
    content: str = ""
    folder_id: str | None = None
    created_at: datetime
    updated_at: datetime
    owner_address: str

    model_config = {"from_attributes": True}


class UniqueTitleResponse(BaseModel):
    title: str
