from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskflow.core.database import get_db
from taskflow.models.subscription import Subscription
from taskflow.routers.deps import get_current_subscription
from taskflow.schemas.section import SectionCreate, SectionMove, SectionRename, SectionResponse, SectionRuleUpdate
from taskflow.schemas.task import TaskResponse
from taskflow.services import section_service

router = APIRouter(prefix="/sections", tags=["sections"])


@router.get("", response_model=List[SectionResponse])
def list_sections(
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return section_service.get_sections(db, current)


@router.post("", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
def create_section(
    data: SectionCreate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return section_service.create_section(
        db,
        current,
        data.name,
        due_bucket=data.due_bucket,
        include_assigned_tasks=data.include_assigned_tasks,
        include_unassigned_tasks=data.include_unassigned_tasks,
        include_done_tasks=data.include_done_tasks,
        include_cancelled_tasks=data.include_cancelled_tasks,
        sort_order=data.sort_order,
    )


@router.get("/{section_id}", response_model=SectionResponse)
def get_section(
    section_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return section_service.get_section(db, current, section_id)


@router.put("/{section_id}/name", response_model=SectionResponse)
def rename_section(
    section_id: UUID,
    data: SectionRename,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return section_service.rename_section(db, current, section_id, data.name)


@router.put("/{section_id}/order", response_model=SectionResponse)
def move_section(
    section_id: UUID,
    data: SectionMove,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return section_service.move_section(db, current, section_id, data.sort_order)


@router.put("/{section_id}/rule", response_model=SectionResponse)
def update_rule(
    section_id: UUID,
    data: SectionRuleUpdate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return section_service.update_section_rule(
        db,
        current,
        section_id,
        data.due_bucket,
        data.include_assigned_tasks,
        data.include_unassigned_tasks,
        data.include_done_tasks,
        data.include_cancelled_tasks,
    )


@router.delete("/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_section(
    section_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    section_service.delete_section(db, current, section_id)


@router.get("/{section_id}/tasks", response_model=List[TaskResponse])
def section_tasks(
    section_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    """Tasks of the section, resolved against the subscription's local today."""
    return section_service.get_section_tasks(db, current, section_id)


@router.post("/{section_id}/tasks/{task_id}", response_model=SectionResponse)
def include_task(
    section_id: UUID,
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return section_service.include_task(db, current, section_id, task_id)


@router.delete("/{section_id}/tasks/{task_id}", response_model=SectionResponse)
def remove_task(
    section_id: UUID,
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return section_service.remove_task(db, current, section_id, task_id)
