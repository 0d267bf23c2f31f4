"""
Tenant-scoped task repository.

Every method takes the subscription id explicitly. Methods flush but never
commit: the calling service owns the transaction.
"""

import logging
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from taskflow.core.errors import EntityNotFoundError, TenantIsolationError
from taskflow.domain.enums import TaskPriority, TaskReminderMode, TaskStatus
from taskflow.domain.reminder import TaskReminder
from taskflow.domain.task import Task, build_forest
from taskflow.models.focus import FocusSession
from taskflow.models.section import SectionTaskRecord
from taskflow.models.task import TaskRecord, TaskReminderRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row <-> aggregate mapping
# ---------------------------------------------------------------------------

def reminder_from_record(record: TaskReminderRecord) -> TaskReminder:
    return TaskReminder.rehydrate(
        id=record.id,
        task_id=record.task_id,
        mode=TaskReminderMode(record.mode),
        minutes_before=record.minutes_before or 0,
        fallback_local_time=record.fallback_local_time,
        trigger_at_utc=record.trigger_at_utc,
        sent_at_utc=record.sent_at_utc,
    )


def task_from_record(record: TaskRecord) -> Task:
    return Task.rehydrate(
        id=record.id,
        subscription_id=record.subscription_id,
        title=record.title,
        project_id=record.project_id,
        parent_task_id=record.parent_task_id,
        note=record.note,
        priority=TaskPriority(record.priority),
        status=TaskStatus(record.status),
        is_completed=bool(record.is_completed),
        completed_at=record.completed_at,
        is_focused=bool(record.is_focused),
        is_important=bool(record.is_important),
        is_marked_for_today=bool(record.is_marked_for_today),
        created_at=record.created_at,
        sort_order=record.sort_order or 0,
        due_date_local=record.due_date_local,
        due_time_local=record.due_time_local,
        due_at_utc=record.due_at_utc,
        tags=record.tags or [],
        reminders=[reminder_from_record(r) for r in record.reminders],
    )


def _copy_to_record(task: Task, record: TaskRecord) -> None:
    record.subscription_id = task.subscription_id
    record.project_id = task.project_id
    record.parent_task_id = task.parent_task_id
    record.title = task.title
    record.note = task.note
    record.priority = task.priority.value
    record.status = task.status.value
    # new list object so the JSON column is flagged dirty
    record.tags = list(task.tags)
    record.is_completed = task.is_completed
    record.completed_at = task.completed_at
    record.is_focused = task.is_focused
    record.is_important = task.is_important
    record.is_marked_for_today = task.is_marked_for_today
    record.sort_order = task.sort_order
    record.due_date_local = task.due_date_local
    record.due_time_local = task.due_time_local
    record.due_at_utc = task.due_at_utc
    record.created_at = task.created_at


def _sync_reminders(task: Task, record: TaskRecord) -> None:
    wanted = {reminder.id: reminder for reminder in task.reminders}

    for existing in list(record.reminders):
        if existing.id not in wanted:
            record.reminders.remove(existing)

    existing_by_id = {r.id: r for r in record.reminders}
    for reminder_id, reminder in wanted.items():
        row = existing_by_id.get(reminder_id)
        if row is None:
            row = TaskReminderRecord(id=reminder_id, task_id=task.id)
            record.reminders.append(row)
        row.mode = reminder.mode.value
        row.minutes_before = reminder.minutes_before
        row.fallback_local_time = reminder.fallback_local_time
        row.trigger_at_utc = reminder.trigger_at_utc
        row.sent_at_utc = reminder.sent_at_utc


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, subscription_id: UUID):
        return select(TaskRecord).where(TaskRecord.subscription_id == subscription_id)

    def _load(self, stmt) -> List[Task]:
        records = self.db.execute(stmt).scalars().all()
        return [task_from_record(record) for record in records]

    def _load_linked(self, stmt) -> List[Task]:
        tasks = self._load(stmt)
        build_forest(tasks)
        return tasks

    # -- reads --

    def get_all(self, subscription_id: UUID) -> List[Task]:
        """Every task of the subscription, subtasks linked to their parents."""
        return self._load_linked(self._scoped(subscription_id))

    def exists_anywhere(self, task_id: UUID) -> bool:
        """Id lookup across every subscription, for imports that keep ids."""
        stmt = select(func.count()).select_from(TaskRecord).where(TaskRecord.id == task_id)
        return (self.db.execute(stmt).scalar() or 0) > 0

    def get_by_id(self, subscription_id: UUID, task_id: UUID) -> Task:
        """Loads the task together with its whole subtree."""
        record = self.db.execute(
            self._scoped(subscription_id).where(TaskRecord.id == task_id)
        ).scalar_one_or_none()
        if record is None:
            raise EntityNotFoundError("Task", task_id)

        loaded = [task_from_record(record)]
        frontier = [record.id]
        while frontier:
            children = self._load(
                self._scoped(subscription_id).where(TaskRecord.parent_task_id.in_(frontier))
            )
            children = [child for child in children if child.id not in {t.id for t in loaded}]
            loaded.extend(children)
            frontier = [child.id for child in children]

        build_forest(loaded)
        return loaded[0]

    def get_by_project(self, subscription_id: UUID, project_id: UUID) -> List[Task]:
        """Top-level tasks of a project with their subtasks linked."""
        tasks = self._load_linked(self._scoped(subscription_id).where(TaskRecord.project_id == project_id))
        return sorted(
            (task for task in tasks if task.parent_task_id is None),
            key=lambda t: (t.sort_order, t.created_at),
        )

    def get_unassigned(self, subscription_id: UUID) -> List[Task]:
        tasks = self._load_linked(self._scoped(subscription_id).where(TaskRecord.project_id.is_(None)))
        return sorted(
            (task for task in tasks if task.parent_task_id is None),
            key=lambda t: (t.sort_order, t.created_at),
        )

    def get_subtasks(self, subscription_id: UUID, parent_task_id: UUID) -> List[Task]:
        stmt = self._scoped(subscription_id).where(TaskRecord.parent_task_id == parent_task_id)
        return sorted(self._load(stmt), key=lambda t: (t.sort_order, t.created_at))

    def get_siblings(
        self, subscription_id: UUID, project_id: Optional[UUID], parent_task_id: Optional[UUID]
    ) -> List[Task]:
        """All tasks sharing one sibling scope."""
        if parent_task_id is not None:
            return self.get_subtasks(subscription_id, parent_task_id)

        stmt = self._scoped(subscription_id).where(TaskRecord.parent_task_id.is_(None))
        if project_id is None:
            stmt = stmt.where(TaskRecord.project_id.is_(None))
        else:
            stmt = stmt.where(TaskRecord.project_id == project_id)
        return sorted(self._load(stmt), key=lambda t: (t.sort_order, t.created_at))

    def get_next_sort_order(
        self, subscription_id: UUID, project_id: Optional[UUID], parent_task_id: Optional[UUID]
    ) -> int:
        stmt = select(func.max(TaskRecord.sort_order)).where(TaskRecord.subscription_id == subscription_id)
        if parent_task_id is not None:
            stmt = stmt.where(TaskRecord.parent_task_id == parent_task_id)
        else:
            stmt = stmt.where(TaskRecord.parent_task_id.is_(None))
            if project_id is None:
                stmt = stmt.where(TaskRecord.project_id.is_(None))
            else:
                stmt = stmt.where(TaskRecord.project_id == project_id)

        current_max = self.db.execute(stmt).scalar()
        return 0 if current_max is None else current_max + 1

    def search(self, subscription_id: UUID, query: str, project_id: Optional[UUID] = None) -> List[Task]:
        if not query or not query.strip():
            return []
        stmt = self._scoped(subscription_id).where(TaskRecord.title.ilike(f"%{query.strip()}%"))
        if project_id is not None:
            stmt = stmt.where(TaskRecord.project_id == project_id)
        return sorted(self._load(stmt), key=lambda t: (t.sort_order, t.created_at))

    # -- writes --

    def _upsert(self, task: Task) -> TaskRecord:
        record = self.db.get(TaskRecord, task.id)
        if record is None:
            record = TaskRecord(id=task.id)
            self.db.add(record)
        elif record.subscription_id != task.subscription_id:
            raise TenantIsolationError("Task belongs to another subscription.")
        _copy_to_record(task, record)
        _sync_reminders(task, record)
        return record

    def add(self, task: Task) -> Task:
        for node in task.iter_subtree():
            self._upsert(node)
        self.db.flush()
        return task

    def update(self, task: Task) -> Task:
        """Writes the task, its whole subtree and all of their reminders."""
        return self.add(task)

    def update_many(self, tasks: Iterable[Task]) -> List[Task]:
        written = []
        for task in tasks:
            self._upsert(task)
            written.append(task)
        self.db.flush()
        return written

    def delete(self, subscription_id: UUID, task_id: UUID) -> bool:
        try:
            task = self.get_by_id(subscription_id, task_id)
        except EntityNotFoundError:
            return False

        # children before parents
        ids = [node.id for node in task.iter_subtree()]
        self.db.execute(delete(SectionTaskRecord).where(SectionTaskRecord.task_id.in_(ids)))
        self.db.execute(delete(TaskReminderRecord).where(TaskReminderRecord.task_id.in_(ids)))
        self.db.execute(update(FocusSession).where(FocusSession.task_id.in_(ids)).values(task_id=None))
        for node_id in reversed(ids):
            self.db.execute(delete(TaskRecord).where(TaskRecord.id == node_id))
        self.db.flush()
        self.db.expire_all()
        logger.debug(f"Deleted task {task_id} with {len(ids) - 1} descendant(s)")
        return True

    def delete_by_project(self, subscription_id: UUID, project_id: UUID) -> int:
        roots = self.get_by_project(subscription_id, project_id)
        for root in roots:
            self.delete(subscription_id, root.id)
        return len(roots)
