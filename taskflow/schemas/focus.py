from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class FocusStart(BaseModel):
    task_id: Optional[UUID] = None


class FocusSessionResponse(BaseModel):
    id: UUID
    task_id: Optional[UUID] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    is_completed: bool
    duration_seconds: int

    model_config = ConfigDict(from_attributes=True)
