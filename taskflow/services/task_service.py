"""
Task service: load the aggregate, run one domain operation, persist.

The caller's subscription is passed explicitly to every function; nothing
here reads an ambient "current tenant".
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from taskflow.core.config import settings
from taskflow.core.errors import EntityNotFoundError, InvalidOperationError, TenantIsolationError
from taskflow.core.timecontext import TimeContext, to_local_date
from taskflow.domain.enums import TaskPriority, TaskStatus
from taskflow.domain.reminder import TaskReminder
from taskflow.domain.reorder import reorder_siblings
from taskflow.domain.task import Task
from taskflow.models.project import Project
from taskflow.models.subscription import Subscription
from taskflow.repositories.task_history_repository import DEFAULT_SUGGESTION_COUNT, TaskHistoryRepository
from taskflow.repositories.task_repository import TaskRepository

logger = logging.getLogger(__name__)


def _by_priority_then_time(task: Task):
    # Low first, then date-only before timed; callers pre-sort newest first
    return (
        task.priority.rank,
        task.due_time_local is not None,
        task.due_time_local or time.min,
    )


def require_project(db: Session, subscription_id: UUID, project_id: UUID) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise EntityNotFoundError("Project", project_id)
    if project.subscription_id != subscription_id:
        raise TenantIsolationError("Project belongs to another subscription.")
    return project


# ============ READS ============

def get_task(db: Session, subscription: Subscription, task_id: UUID) -> Task:
    logger.debug(f"Fetching task {task_id}")
    return TaskRepository(db).get_by_id(subscription.id, task_id)


def get_project_tasks(db: Session, subscription: Subscription, project_id: UUID) -> List[Task]:
    logger.debug(f"Fetching tasks for project {project_id}")
    require_project(db, subscription.id, project_id)
    return TaskRepository(db).get_by_project(subscription.id, project_id)


def get_unassigned_tasks(db: Session, subscription: Subscription) -> List[Task]:
    return TaskRepository(db).get_unassigned(subscription.id)


def get_subtasks(db: Session, subscription: Subscription, parent_task_id: UUID) -> List[Task]:
    logger.debug(f"Fetching subtasks for parent task {parent_task_id}")
    repo = TaskRepository(db)
    repo.get_by_id(subscription.id, parent_task_id)
    return repo.get_subtasks(subscription.id, parent_task_id)


def search_tasks(db: Session, subscription: Subscription, query: str, project_id: Optional[UUID] = None) -> List[Task]:
    logger.debug(f"Searching tasks. QueryLength={len(query or '')}, ProjectId={project_id}")
    return TaskRepository(db).search(subscription.id, query, project_id)


def get_name_suggestions(
    db: Session,
    subscription: Subscription,
    prefix: Optional[str],
    is_subtask_name: bool = False,
    take: int = DEFAULT_SUGGESTION_COUNT,
) -> List[str]:
    logger.debug(f"Fetching name suggestions. IsSubTaskName={is_subtask_name}, PrefixLength={len(prefix or '')}, Take={take}")
    return TaskHistoryRepository(db).get_suggestions(subscription.id, prefix, is_subtask_name, take)


def get_today_tasks(db: Session, subscription: Subscription, now_utc: Optional[datetime] = None) -> List[Task]:
    ctx = TimeContext.capture(subscription.time_zone, now_utc)
    logger.debug(f"Fetching today tasks for local date {ctx.today_local}")
    tasks = [
        task for task in TaskRepository(db).get_all(subscription.id)
        if task.is_marked_for_today or task.due_date_local == ctx.today_local
    ]
    tasks.sort(key=lambda t: t.created_at, reverse=True)
    tasks.sort(key=_by_priority_then_time)
    return tasks


def get_this_week_tasks(db: Session, subscription: Subscription, now_utc: Optional[datetime] = None) -> List[Task]:
    ctx = TimeContext.capture(subscription.time_zone, now_utc)
    tasks = [
        task for task in TaskRepository(db).get_all(subscription.id)
        if task.due_date_local is not None and ctx.today_local < task.due_date_local <= ctx.end_of_week_local
    ]
    return sorted(tasks, key=lambda t: (t.due_date_local, t.due_time_local is not None, t.due_time_local or time.min))


def get_upcoming_tasks(db: Session, subscription: Subscription, now_utc: Optional[datetime] = None) -> List[Task]:
    ctx = TimeContext.capture(subscription.time_zone, now_utc)
    tasks = [
        task for task in TaskRepository(db).get_all(subscription.id)
        if task.due_date_local is not None and task.due_date_local > ctx.end_of_week_local
    ]
    return sorted(tasks, key=lambda t: (t.due_date_local, t.due_time_local is not None, t.due_time_local or time.min))


def get_recent_tasks(
    db: Session, subscription: Subscription, days: Optional[int] = None, now_utc: Optional[datetime] = None
) -> List[Task]:
    days = settings.RECENT_DAYS if days is None else days
    ctx = TimeContext.capture(subscription.time_zone, now_utc)
    cutoff = ctx.today_local - timedelta(days=days)
    tasks = [
        task for task in TaskRepository(db).get_all(subscription.id)
        if to_local_date(task.created_at, ctx.time_zone) >= cutoff
    ]
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)


# ============ CREATE ============

def create_task(
    db: Session,
    subscription: Subscription,
    title: str,
    priority: TaskPriority = TaskPriority.MEDIUM,
    note: Optional[str] = None,
    project_id: Optional[UUID] = None,
) -> Task:
    if project_id is not None:
        require_project(db, subscription.id, project_id)

    logger.info(f"Creating task in subscription {subscription.id}. ProjectId={project_id}, TitleLength={len(title or '')}, Priority={priority}")
    repo = TaskRepository(db)
    task = Task(subscription.id, title, project_id)
    task.set_sort_order(repo.get_next_sort_order(subscription.id, project_id, None))
    task.set_priority(priority)
    task.update_note(note)
    repo.add(task)
    TaskHistoryRepository(db).register_usage(subscription.id, task.title, False)
    db.commit()
    logger.info(f"Created task {task.id}")
    return task


def create_subtask(
    db: Session,
    subscription: Subscription,
    parent_task_id: UUID,
    title: str,
    priority: TaskPriority = TaskPriority.MEDIUM,
    note: Optional[str] = None,
) -> Task:
    logger.info(f"Creating subtask under parent task {parent_task_id}. TitleLength={len(title or '')}")
    repo = TaskRepository(db)
    parent = repo.get_by_id(subscription.id, parent_task_id)
    subtask = Task(subscription.id, title, parent.project_id)
    subtask.set_priority(priority)
    subtask.update_note(note)
    parent.add_subtask(subtask)
    repo.add(subtask)
    TaskHistoryRepository(db).register_usage(subscription.id, subtask.title, True)
    db.commit()
    logger.info(f"Created subtask {subtask.id} under parent task {parent_task_id}")
    return subtask


def attach_subtask(db: Session, subscription: Subscription, parent_task_id: UUID, task_id: UUID) -> Task:
    """Turns an existing top-level task into a subtask of another task."""
    logger.info(f"Attaching task {task_id} under parent task {parent_task_id}")
    repo = TaskRepository(db)
    parent = repo.get_by_id(subscription.id, parent_task_id)
    candidate = repo.get_by_id(subscription.id, task_id)
    if candidate.parent_task_id is not None and candidate.parent_task_id != parent_task_id:
        raise InvalidOperationError("Task already belongs to another parent task.")
    parent.add_subtask(candidate)
    repo.update(candidate)
    db.commit()
    return candidate


# ============ UPDATE ============

def _mutate(db: Session, subscription: Subscription, task_id: UUID, operation) -> Task:
    repo = TaskRepository(db)
    task = repo.get_by_id(subscription.id, task_id)
    operation(task)
    repo.update(task)
    db.commit()
    return task


def update_title(db: Session, subscription: Subscription, task_id: UUID, new_title: str) -> Task:
    logger.info(f"Updating title for task {task_id}. NewTitleLength={len(new_title or '')}")
    history = TaskHistoryRepository(db)

    def apply(task: Task):
        task.update_title(new_title)
        history.register_usage(subscription.id, task.title, task.parent_task_id is not None)

    return _mutate(db, subscription, task_id, apply)


def update_note(db: Session, subscription: Subscription, task_id: UUID, new_note: Optional[str]) -> Task:
    logger.info(f"Updating note for task {task_id}. NoteLength={len(new_note or '')}")
    return _mutate(db, subscription, task_id, lambda t: t.update_note(new_note))


def set_priority(db: Session, subscription: Subscription, task_id: UUID, priority: TaskPriority) -> Task:
    logger.info(f"Setting priority {priority.value} for task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.set_priority(priority))


def set_status(db: Session, subscription: Subscription, task_id: UUID, status: TaskStatus) -> Task:
    logger.info(f"Setting status {status.value} for task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.set_status(status))


def set_completed(
    db: Session, subscription: Subscription, task_id: UUID, is_completed: bool, now_utc: Optional[datetime] = None
) -> Task:
    logger.info(f"Setting completion {is_completed} for task {task_id}")

    def apply(task: Task):
        if is_completed:
            task.complete(now_utc)
        else:
            task.uncomplete()

    return _mutate(db, subscription, task_id, apply)


def update_task(
    db: Session,
    subscription: Subscription,
    task_id: UUID,
    changes: dict,
    now_utc: Optional[datetime] = None,
) -> Task:
    """Applies several field changes in one transaction; nothing is saved if one fails.

    Recognised keys: title, note, priority, status, is_completed.
    """
    logger.info(f"Updating task {task_id}. Fields={sorted(changes)}")
    history = TaskHistoryRepository(db)

    def apply(task: Task):
        if "title" in changes:
            task.update_title(changes["title"])
        if "note" in changes:
            task.update_note(changes["note"])
        if changes.get("priority") is not None:
            task.set_priority(changes["priority"])
        if changes.get("status") is not None:
            task.set_status(changes["status"])
        if changes.get("is_completed") is True:
            task.complete(now_utc)
        elif changes.get("is_completed") is False:
            task.uncomplete()
        # only once every field was accepted
        if "title" in changes:
            history.register_usage(subscription.id, task.title, task.parent_task_id is not None)

    return _mutate(db, subscription, task_id, apply)


def toggle_focus(db: Session, subscription: Subscription, task_id: UUID) -> Task:
    logger.info(f"Toggling focus flag for task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.toggle_focus())


def toggle_important(db: Session, subscription: Subscription, task_id: UUID) -> Task:
    logger.info(f"Toggling important flag for task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.toggle_important())


def toggle_today_mark(db: Session, subscription: Subscription, task_id: UUID) -> Task:
    logger.info(f"Toggling today mark for task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.toggle_today_mark())


def set_tags(db: Session, subscription: Subscription, task_id: UUID, tags: Sequence[str]) -> Task:
    logger.info(f"Setting {len(tags)} tag(s) for task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.set_tags(tags))


def move_to_project(db: Session, subscription: Subscription, task_id: UUID, project_id: UUID) -> Task:
    logger.info(f"Moving task {task_id} to project {project_id}")
    require_project(db, subscription.id, project_id)
    repo = TaskRepository(db)
    task = repo.get_by_id(subscription.id, task_id)
    if task.parent_task_id is not None:
        logger.warning(f"Cannot move subtask {task_id} directly. ParentTaskId={task.parent_task_id}")
        raise InvalidOperationError("Subtasks inherit parent project assignment and cannot be moved directly.")
    if task.project_id == project_id:
        logger.debug(f"Task {task_id} is already in project {project_id}")
        return task

    next_sort_order = repo.get_next_sort_order(subscription.id, project_id, None)
    task.move_to_project(project_id)
    task.set_sort_order(next_sort_order)
    repo.update(task)
    db.commit()
    return task


def unassign_from_project(db: Session, subscription: Subscription, task_id: UUID) -> Task:
    logger.info(f"Unassigning task {task_id} from project")
    repo = TaskRepository(db)
    task = repo.get_by_id(subscription.id, task_id)
    if task.parent_task_id is not None:
        logger.warning(f"Cannot unassign subtask {task_id} directly. ParentTaskId={task.parent_task_id}")
        raise InvalidOperationError("Subtasks inherit parent project assignment and cannot be unassigned directly.")
    if task.project_id is None:
        return task

    next_sort_order = repo.get_next_sort_order(subscription.id, None, None)
    task.unassign_from_project()
    task.set_sort_order(next_sort_order)
    repo.update(task)
    db.commit()
    return task


# ============ SCHEDULING ============

def set_due_date(db: Session, subscription: Subscription, task_id: UUID, due_date_local: date) -> Task:
    logger.info(f"Setting due date {due_date_local} for task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.set_due_date(due_date_local))


def set_due_date_time(
    db: Session, subscription: Subscription, task_id: UUID, due_date_local: date, due_time_local: time
) -> Task:
    logger.info(f"Setting due datetime for task {task_id}. DueDateLocal={due_date_local}, DueTimeLocal={due_time_local}")
    tz = subscription.time_zone
    return _mutate(db, subscription, task_id, lambda t: t.set_due_date_time(due_date_local, due_time_local, tz))


def clear_due_date(db: Session, subscription: Subscription, task_id: UUID) -> Task:
    logger.info(f"Clearing due date for task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.clear_due_date())


# ============ REMINDERS ============

def add_relative_reminder(db: Session, subscription: Subscription, task_id: UUID, minutes_before: int) -> TaskReminder:
    logger.info(f"Adding relative reminder for task {task_id}. MinutesBefore={minutes_before}")
    created = []
    _mutate(db, subscription, task_id, lambda t: created.append(t.add_relative_reminder(minutes_before)))
    return created[0]


def add_on_time_reminder(db: Session, subscription: Subscription, task_id: UUID) -> TaskReminder:
    return add_relative_reminder(db, subscription, task_id, 0)


def add_date_only_reminder(
    db: Session, subscription: Subscription, task_id: UUID, fallback_local_time: time
) -> TaskReminder:
    logger.info(f"Adding date-only reminder for task {task_id}. FallbackLocalTime={fallback_local_time}")
    tz = subscription.time_zone
    created = []
    _mutate(db, subscription, task_id, lambda t: created.append(t.add_date_only_reminder(fallback_local_time, tz)))
    return created[0]


def remove_reminder(db: Session, subscription: Subscription, task_id: UUID, reminder_id: UUID) -> Task:
    logger.info(f"Removing reminder {reminder_id} from task {task_id}")
    return _mutate(db, subscription, task_id, lambda t: t.remove_reminder(reminder_id))


def mark_reminder_sent(
    db: Session, subscription: Subscription, task_id: UUID, reminder_id: UUID, sent_at_utc: datetime
) -> Task:
    logger.info(f"Marking reminder {reminder_id} of task {task_id} as sent")
    return _mutate(db, subscription, task_id, lambda t: t.mark_reminder_sent(reminder_id, sent_at_utc))


# ============ ORDERING ============

def _reorder(db: Session, repo: TaskRepository, siblings: List[Task], ordered_task_ids: Sequence[UUID]) -> List[Task]:
    try:
        result = reorder_siblings(siblings, ordered_task_ids)
    except ValueError as ex:
        logger.warning(f"Rejected reorder request: {ex}")
        raise

    if result.changed:
        logger.info(f"Persisting reordered tasks. TaskCount={len(result.ordered)}, Changed={len(result.changed)}")
        repo.update_many(result.changed)
        db.commit()
    return result.ordered


def reorder_project_tasks(
    db: Session, subscription: Subscription, project_id: UUID, ordered_task_ids: Sequence[UUID]
) -> List[Task]:
    logger.info(f"Reordering tasks for project {project_id}. RequestedOrderCount={len(ordered_task_ids)}")
    require_project(db, subscription.id, project_id)
    repo = TaskRepository(db)
    siblings = repo.get_siblings(subscription.id, project_id, None)
    return _reorder(db, repo, siblings, ordered_task_ids)


def reorder_unassigned_tasks(db: Session, subscription: Subscription, ordered_task_ids: Sequence[UUID]) -> List[Task]:
    logger.info(f"Reordering unassigned tasks. RequestedOrderCount={len(ordered_task_ids)}")
    repo = TaskRepository(db)
    siblings = repo.get_siblings(subscription.id, None, None)
    return _reorder(db, repo, siblings, ordered_task_ids)


def reorder_subtasks(
    db: Session, subscription: Subscription, parent_task_id: UUID, ordered_task_ids: Sequence[UUID]
) -> List[Task]:
    logger.info(f"Reordering subtasks for parent task {parent_task_id}. RequestedOrderCount={len(ordered_task_ids)}")
    repo = TaskRepository(db)
    repo.get_by_id(subscription.id, parent_task_id)
    siblings = repo.get_siblings(subscription.id, None, parent_task_id)
    return _reorder(db, repo, siblings, ordered_task_ids)


# ============ DELETE ============

def delete_task(db: Session, subscription: Subscription, task_id: UUID) -> bool:
    logger.info(f"Deleting task {task_id}")
    deleted = TaskRepository(db).delete(subscription.id, task_id)
    db.commit()
    return deleted
