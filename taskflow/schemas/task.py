"""Pydantic schemas for task request/response validation."""

from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taskflow.domain.enums import TaskPriority, TaskReminderMode, TaskStatus


class TaskCreate(BaseModel):
    title: str
    note: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    project_id: Optional[UUID] = None


class SubTaskCreate(BaseModel):
    title: str
    note: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM


class TaskUpdate(BaseModel):
    """Partial update; only the fields that are sent are applied."""

    title: Optional[str] = None
    note: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    is_completed: Optional[bool] = None


class TaskMove(BaseModel):
    project_id: UUID


class TaskDueUpdate(BaseModel):
    due_date_local: date
    due_time_local: Optional[time] = None


class TaskTagsUpdate(BaseModel):
    tags: List[str]


class ReminderCreate(BaseModel):
    # relative: minutes_before (0 = on time); date_only: fallback_local_time
    mode: TaskReminderMode
    minutes_before: int = 0
    fallback_local_time: Optional[time] = None


class ReminderSent(BaseModel):
    sent_at_utc: datetime


class ReorderRequest(BaseModel):
    ordered_task_ids: List[UUID]


class ReminderResponse(BaseModel):
    id: UUID
    task_id: UUID
    mode: TaskReminderMode
    minutes_before: int
    fallback_local_time: Optional[time]
    trigger_at_utc: datetime
    sent_at_utc: Optional[datetime]
    is_sent: bool

    model_config = ConfigDict(from_attributes=True)


class TaskResponse(BaseModel):
    id: UUID
    subscription_id: UUID
    project_id: Optional[UUID]
    parent_task_id: Optional[UUID]
    title: str
    note: Optional[str]
    priority: TaskPriority
    status: TaskStatus
    is_completed: bool
    completed_at: Optional[datetime]
    is_focused: bool
    is_important: bool
    is_marked_for_today: bool
    sort_order: int
    due_date_local: Optional[date]
    due_time_local: Optional[time]
    due_at_utc: Optional[datetime]
    created_at: datetime
    tags: List[str] = Field(default_factory=list)
    reminders: List[ReminderResponse] = Field(default_factory=list)
    subtasks: List["TaskResponse"] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


TaskResponse.model_rebuild()
