from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserInfoResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[int] = None
    email: str
    name: str
    reminders_count: int = 0
    upcoming_count: int = 0
    completed_count: int = 0
    overdue_count: int = 0
