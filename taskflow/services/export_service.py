"""
Project export/import.

An export is a self-contained snapshot of one project: its settings and its
task forest with tags and reminders. Import recreates the snapshot inside the
caller's subscription keeping every id; ids that already exist are rejected.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from taskflow.core.errors import InvalidOperationError, ValidationError
from taskflow.core.timecontext import utc_now
from taskflow.domain.reminder import TaskReminder
from taskflow.domain.task import Task
from taskflow.models.project import Project
from taskflow.models.subscription import Subscription
from taskflow.models.task import TaskReminderRecord
from taskflow.repositories.task_repository import TaskRepository
from taskflow.schemas.export import EXPORT_FORMAT_VERSION, ProjectExport, ProjectSnapshot, TaskExport
from taskflow.services.task_service import require_project

logger = logging.getLogger(__name__)


def export_project(db: Session, subscription: Subscription, project_id: UUID) -> ProjectSnapshot:
    project = require_project(db, subscription.id, project_id)
    roots = TaskRepository(db).get_by_project(subscription.id, project_id)
    logger.info(f"Exporting project {project_id} with {len(roots)} top-level task(s)")
    return ProjectSnapshot(
        exported_at=utc_now(),
        project=ProjectExport.model_validate(project),
        tasks=[TaskExport.model_validate(task) for task in roots],
    )


def _flatten(snapshot: ProjectSnapshot) -> List[Tuple[TaskExport, Optional[UUID]]]:
    """(task, parent id) pairs, parents before their subtasks."""
    flat = []
    stack = [(task, None) for task in reversed(snapshot.tasks)]
    while stack:
        node, parent_id = stack.pop()
        flat.append((node, parent_id))
        stack.extend((child, node.id) for child in reversed(node.subtasks))
    return flat


def _rebuild(item: TaskExport, subscription_id: UUID, project_id: UUID, parent_id: Optional[UUID]) -> Task:
    reminders = [
        TaskReminder.rehydrate(
            id=r.id,
            task_id=item.id,
            mode=r.mode,
            minutes_before=r.minutes_before,
            fallback_local_time=r.fallback_local_time,
            trigger_at_utc=r.trigger_at_utc,
            sent_at_utc=r.sent_at_utc,
        )
        for r in item.reminders
    ]
    return Task.rehydrate(
        id=item.id,
        subscription_id=subscription_id,
        title=item.title,
        project_id=project_id,
        parent_task_id=parent_id,
        note=item.note,
        priority=item.priority,
        status=item.status,
        is_completed=item.is_completed,
        completed_at=item.completed_at,
        is_focused=item.is_focused,
        is_important=item.is_important,
        is_marked_for_today=item.is_marked_for_today,
        created_at=item.created_at,
        sort_order=item.sort_order,
        due_date_local=item.due_date_local,
        due_time_local=item.due_time_local,
        due_at_utc=item.due_at_utc,
        tags=item.tags,
        reminders=reminders,
    )


def import_project(db: Session, subscription: Subscription, snapshot: ProjectSnapshot) -> Project:
    if snapshot.format_version != EXPORT_FORMAT_VERSION:
        raise ValidationError(f"Unsupported export format version {snapshot.format_version}.")

    flat = _flatten(snapshot)
    task_ids = [item.id for item, _ in flat]
    reminder_ids = [r.id for item, _ in flat for r in item.reminders]
    if len(set(task_ids)) != len(task_ids) or len(set(reminder_ids)) != len(reminder_ids):
        raise ValidationError("Export contains duplicate ids.")

    if db.get(Project, snapshot.project.id) is not None:
        logger.warning(f"Rejected import of project {snapshot.project.id}: id already exists")
        raise InvalidOperationError(f"Project with id '{snapshot.project.id}' already exists.")
    repo = TaskRepository(db)
    clashing = [task_id for task_id in task_ids if repo.exists_anywhere(task_id)]
    if clashing or (reminder_ids and db.query(TaskReminderRecord).filter(TaskReminderRecord.id.in_(reminder_ids)).count()):
        logger.warning(f"Rejected import of project {snapshot.project.id}: task or reminder ids already exist")
        raise InvalidOperationError("Export contains task or reminder ids that already exist.")

    # build every aggregate before writing so a bad row aborts the whole import
    rebuilt = [_rebuild(item, subscription.id, snapshot.project.id, parent_id) for item, parent_id in flat]

    logger.info(f"Importing project {snapshot.project.id} with {len(flat)} task(s) into subscription {subscription.id}")
    data = snapshot.project
    project = Project(
        id=data.id,
        subscription_id=subscription.id,
        name=data.name,
        color=data.color,
        icon=data.icon,
        note=data.note,
        is_default=False,
        view_type=data.view_type.value,
        created_at=data.created_at,
    )
    db.add(project)
    db.flush()
    repo.update_many(rebuilt)
    db.commit()
    db.refresh(project)
    return project
