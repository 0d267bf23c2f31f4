from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from taskflow.domain.enums import ProjectViewType


class ProjectCreate(BaseModel):
    name: str
    color: Optional[str] = None
    icon: Optional[str] = None
    note: Optional[str] = None
    is_default: bool = False


class ProjectRename(BaseModel):
    name: str


class ProjectVisualsUpdate(BaseModel):
    color: Optional[str] = None
    icon: Optional[str] = None
    note: Optional[str] = None


class ProjectViewTypeUpdate(BaseModel):
    view_type: ProjectViewType


class ProjectResponse(BaseModel):
    id: UUID
    name: str
    color: str
    icon: str
    note: Optional[str]
    is_default: bool
    view_type: ProjectViewType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
