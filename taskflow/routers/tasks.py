from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from taskflow.core.database import get_db
from taskflow.core.errors import EntityNotFoundError, ValidationError
from taskflow.domain.enums import TaskReminderMode
from taskflow.models.subscription import Subscription
from taskflow.routers.deps import get_current_subscription
from taskflow.schemas.task import (
    ReminderCreate,
    ReminderResponse,
    ReminderSent,
    ReorderRequest,
    SubTaskCreate,
    TaskCreate,
    TaskDueUpdate,
    TaskMove,
    TaskResponse,
    TaskTagsUpdate,
    TaskUpdate,
)
from taskflow.services import task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    data: TaskCreate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.create_task(db, current, data.title, data.priority, data.note, data.project_id)


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription),
    project_id: Optional[UUID] = Query(None)
):
    """Top-level tasks of a project, or the unassigned inbox when no project is given."""
    if project_id:
        return task_service.get_project_tasks(db, current, project_id)
    return task_service.get_unassigned_tasks(db, current)


@router.get("/today", response_model=List[TaskResponse])
def today(
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.get_today_tasks(db, current)


@router.get("/this-week", response_model=List[TaskResponse])
def this_week(
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.get_this_week_tasks(db, current)


@router.get("/upcoming", response_model=List[TaskResponse])
def upcoming(
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.get_upcoming_tasks(db, current)


@router.get("/recent", response_model=List[TaskResponse])
def recent(
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription),
    days: Optional[int] = Query(None, ge=0)
):
    return task_service.get_recent_tasks(db, current, days)


@router.get("/search", response_model=List[TaskResponse])
def search(
    q: str = Query(...),
    project_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.search_tasks(db, current, q, project_id)


@router.get("/suggestions", response_model=List[str])
def name_suggestions(
    prefix: str = Query(""),
    subtask: bool = Query(False),
    take: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    """Previously used task (or subtask) titles, most used first."""
    return task_service.get_name_suggestions(db, current, prefix, subtask, take)


@router.post("/reorder", response_model=List[TaskResponse])
def reorder_unassigned(
    data: ReorderRequest,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.reorder_unassigned_tasks(db, current, data.ordered_task_ids)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.get_task(db, current, task_id)


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: UUID,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.update_task(db, current, task_id, data.model_dump(exclude_unset=True))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    if not task_service.delete_task(db, current, task_id):
        raise EntityNotFoundError("Task", task_id)


# ============ SUBTASKS ============

@router.post("/{task_id}/subtasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_subtask(
    task_id: UUID,
    data: SubTaskCreate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.create_subtask(db, current, task_id, data.title, data.priority, data.note)


@router.get("/{task_id}/subtasks", response_model=List[TaskResponse])
def list_subtasks(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.get_subtasks(db, current, task_id)


@router.post("/{task_id}/subtasks/reorder", response_model=List[TaskResponse])
def reorder_subtasks(
    task_id: UUID,
    data: ReorderRequest,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.reorder_subtasks(db, current, task_id, data.ordered_task_ids)


@router.post("/{task_id}/subtasks/{subtask_id}", response_model=TaskResponse)
def attach_subtask(
    task_id: UUID,
    subtask_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.attach_subtask(db, current, task_id, subtask_id)


# ============ FLAGS & COMPLETION ============

@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.set_completed(db, current, task_id, True)


@router.post("/{task_id}/uncomplete", response_model=TaskResponse)
def uncomplete(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.set_completed(db, current, task_id, False)


@router.post("/{task_id}/focus", response_model=TaskResponse)
def toggle_focus(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.toggle_focus(db, current, task_id)


@router.post("/{task_id}/important", response_model=TaskResponse)
def toggle_important(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.toggle_important(db, current, task_id)


@router.post("/{task_id}/today", response_model=TaskResponse)
def toggle_today(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.toggle_today_mark(db, current, task_id)


@router.put("/{task_id}/tags", response_model=TaskResponse)
def set_tags(
    task_id: UUID,
    data: TaskTagsUpdate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.set_tags(db, current, task_id, data.tags)


# ============ PROJECT ASSIGNMENT ============

@router.post("/{task_id}/move", response_model=TaskResponse)
def move(
    task_id: UUID,
    data: TaskMove,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.move_to_project(db, current, task_id, data.project_id)


@router.post("/{task_id}/unassign", response_model=TaskResponse)
def unassign(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.unassign_from_project(db, current, task_id)


# ============ SCHEDULING ============

@router.put("/{task_id}/due", response_model=TaskResponse)
def set_due(
    task_id: UUID,
    data: TaskDueUpdate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    """Date-only when no time is sent; the time is read in the subscription's zone."""
    if data.due_time_local is None:
        return task_service.set_due_date(db, current, task_id, data.due_date_local)
    return task_service.set_due_date_time(db, current, task_id, data.due_date_local, data.due_time_local)


@router.delete("/{task_id}/due", response_model=TaskResponse)
def clear_due(
    task_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.clear_due_date(db, current, task_id)


@router.post("/{task_id}/reminders", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
def add_reminder(
    task_id: UUID,
    data: ReminderCreate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    if data.mode == TaskReminderMode.RELATIVE_TO_DUE_DATE_TIME:
        return task_service.add_relative_reminder(db, current, task_id, data.minutes_before)
    if data.fallback_local_time is None:
        raise ValidationError("Fallback local time is required.")
    return task_service.add_date_only_reminder(db, current, task_id, data.fallback_local_time)


@router.delete("/{task_id}/reminders/{reminder_id}", response_model=TaskResponse)
def remove_reminder(
    task_id: UUID,
    reminder_id: UUID,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.remove_reminder(db, current, task_id, reminder_id)


@router.post("/{task_id}/reminders/{reminder_id}/sent", response_model=TaskResponse)
def mark_reminder_sent(
    task_id: UUID,
    reminder_id: UUID,
    data: ReminderSent,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return task_service.mark_reminder_sent(db, current, task_id, reminder_id, data.sent_at_utc)
