"""
Reminder request/response schemas.

JSON is camelCase on the wire; request bodies also accept the snake_case
field names.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReminderCreate(CamelModel):
    # title and date are checked by the service so failures carry our messages
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    device: Optional[str] = None
    category: Optional[str] = None
    icon_image_url: Optional[str] = None


class ReminderUpdate(CamelModel):
    """Only fields present in the body are applied; unknown keys are dropped"""
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    device: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    icon_image_url: Optional[str] = None


class ReminderRead(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    owner_id: int
    title: str
    description: Optional[str] = None
    date: Optional[datetime] = None
    time: Optional[str] = None
    device: Optional[str] = None
    category: Optional[str] = None
    icon_image_url: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime


class ReminderListMeta(BaseModel):
    total: int
    page: int
    limit: int
    returned: int


class ReminderListResponse(BaseModel):
    meta: ReminderListMeta
    data: List[ReminderRead]


class ReconcileResult(BaseModel):
    matched: int
    modified: int


class OkResponse(BaseModel):
    ok: bool = True
