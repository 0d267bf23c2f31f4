"""Portable project snapshot used by export and import."""

from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taskflow.domain.enums import ProjectViewType, TaskPriority, TaskReminderMode, TaskStatus

EXPORT_FORMAT_VERSION = 1


class ReminderExport(BaseModel):
    id: UUID
    mode: TaskReminderMode
    minutes_before: int = 0
    fallback_local_time: Optional[time] = None
    trigger_at_utc: datetime
    sent_at_utc: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TaskExport(BaseModel):
    id: UUID
    title: str
    note: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    is_focused: bool = False
    is_important: bool = False
    is_marked_for_today: bool = False
    sort_order: int = 0
    due_date_local: Optional[date] = None
    due_time_local: Optional[time] = None
    due_at_utc: Optional[datetime] = None
    created_at: datetime
    tags: List[str] = Field(default_factory=list)
    reminders: List[ReminderExport] = Field(default_factory=list)
    subtasks: List["TaskExport"] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ProjectExport(BaseModel):
    id: UUID
    name: str
    color: str
    icon: str
    note: Optional[str] = None
    is_default: bool = False
    view_type: ProjectViewType = ProjectViewType.LIST
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectSnapshot(BaseModel):
    format_version: int = EXPORT_FORMAT_VERSION
    exported_at: datetime
    project: ProjectExport
    tasks: List[TaskExport] = Field(default_factory=list)


TaskExport.model_rebuild()
