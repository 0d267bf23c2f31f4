from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from taskflow.domain.enums import DueBucket


class SectionCreate(BaseModel):
    name: str
    due_bucket: DueBucket = DueBucket.ANY
    include_assigned_tasks: bool = True
    include_unassigned_tasks: bool = True
    include_done_tasks: bool = False
    include_cancelled_tasks: bool = False
    sort_order: Optional[int] = None


class SectionRename(BaseModel):
    name: str


class SectionRuleUpdate(BaseModel):
    due_bucket: DueBucket
    include_assigned_tasks: bool
    include_unassigned_tasks: bool
    include_done_tasks: bool
    include_cancelled_tasks: bool


class SectionResponse(BaseModel):
    id: UUID
    name: str
    sort_order: int
    is_system_section: bool
    due_bucket: DueBucket
    include_assigned_tasks: bool
    include_unassigned_tasks: bool
    include_done_tasks: bool
    include_cancelled_tasks: bool
    manual_task_ids: List[UUID]

    model_config = ConfigDict(from_attributes=True)


class SectionMove(BaseModel):
    sort_order: int
