from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskflow.core.database import get_db
from taskflow.models.subscription import Subscription
from taskflow.routers.deps import get_current_subscription
from taskflow.schemas.export import ProjectSnapshot
from taskflow.schemas.project import (
    ProjectCreate,
    ProjectRename,
    ProjectResponse,
    ProjectViewTypeUpdate,
    ProjectVisualsUpdate,
)
from taskflow.schemas.task import ReorderRequest, TaskResponse
from taskflow.services import export_service, project_service, task_service

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return project_service.create_project(
        db, current, data.name, color=data.color, icon=data.icon, note=data.note, is_default=data.is_default
    )


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return project_service.list_projects(db, current)


@router.post("/import", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def import_project(
    snapshot: ProjectSnapshot,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return export_service.import_project(db, current, snapshot)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return project_service.get_project(db, current, project_id)


@router.put("/{project_id}/name", response_model=ProjectResponse)
def rename_project(
    project_id: UUID,
    data: ProjectRename,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return project_service.rename_project(db, current, project_id, data.name)


@router.put("/{project_id}/visuals", response_model=ProjectResponse)
def update_visuals(
    project_id: UUID,
    data: ProjectVisualsUpdate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return project_service.update_visuals(db, current, project_id, color=data.color, icon=data.icon, note=data.note)


@router.put("/{project_id}/view-type", response_model=ProjectResponse)
def set_view_type(
    project_id: UUID,
    data: ProjectViewTypeUpdate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return project_service.set_view_type(db, current, project_id, data.view_type)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    project_service.delete_project(db, current, project_id)


@router.get("/{project_id}/tasks", response_model=List[TaskResponse])
def list_project_tasks(
    project_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.get_project_tasks(db, current, project_id)


@router.post("/{project_id}/tasks/reorder", response_model=List[TaskResponse])
def reorder_project_tasks(
    project_id: UUID,
    data: ReorderRequest,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.reorder_project_tasks(db, current, project_id, data.ordered_task_ids)


@router.get("/{project_id}/export", response_model=ProjectSnapshot)
def export_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return export_service.export_project(db, current, project_id)
