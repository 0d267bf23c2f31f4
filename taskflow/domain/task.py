"""
Task aggregate.

A task owns its subtasks, tags and reminders. Every mutation goes through a
method of this class; the method validates first and only then writes, so a
raised error never leaves a half-applied change behind.

Cascades (complete, assign, unassign) walk the subtree with an explicit
stack instead of recursing through the object graph.
"""

from datetime import date, datetime, time, tzinfo
from typing import Iterable, Iterator, List, Optional, Tuple
from uuid import UUID, uuid4

from taskflow.core.errors import (
    EntityNotFoundError,
    InvalidOperationError,
    TenantIsolationError,
    ValidationError,
)
from taskflow.core.timecontext import ensure_utc, local_to_utc, utc_now
from taskflow.domain.enums import TaskPriority, TaskStatus
from taskflow.domain.reminder import TaskReminder

MAX_TITLE_LENGTH = 500


def _normalize_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValidationError("Task title cannot be empty.")
    trimmed = title.strip()
    if len(trimmed) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Task title cannot exceed {MAX_TITLE_LENGTH} characters.")
    return trimmed


def _normalize_note(note: Optional[str]) -> Optional[str]:
    if note is None or not note.strip():
        return None
    return note.strip()


def _normalize_tag(tag: Optional[str]) -> str:
    if tag is None or not tag.strip():
        raise ValidationError("Tag cannot be empty.")
    return tag.strip()


def _require_id(value: Optional[UUID], label: str) -> UUID:
    if not value or (isinstance(value, UUID) and value.int == 0):
        raise ValidationError(f"{label} cannot be empty.")
    return value


def _require_due_date(due_date_local: Optional[date]) -> date:
    # date.min stands in for "no date" coming from serialized payloads
    if due_date_local is None or due_date_local == date.min:
        raise ValidationError("Due date must be a valid date.")
    return due_date_local


class Task:
    def __init__(
        self,
        subscription_id: UUID,
        title: str,
        project_id: Optional[UUID] = None,
        *,
        created_at: Optional[datetime] = None,
    ):
        _require_id(subscription_id, "Subscription id")
        normalized_title = _normalize_title(title)
        if project_id is not None:
            _require_id(project_id, "Project id")

        self._id = uuid4()
        self._subscription_id = subscription_id
        self._title = normalized_title
        self._note: Optional[str] = None
        self._priority = TaskPriority.MEDIUM
        self._status = TaskStatus.TODO
        self._is_completed = False
        self._completed_at: Optional[datetime] = None
        self._is_focused = False
        self._is_important = False
        self._is_marked_for_today = False
        self._project_id = project_id
        self._parent_task_id: Optional[UUID] = None
        self._sort_order = 0
        self._due_date_local: Optional[date] = None
        self._due_time_local: Optional[time] = None
        self._due_at_utc: Optional[datetime] = None
        self._created_at = ensure_utc(created_at) if created_at is not None else utc_now()
        self._subtasks: List["Task"] = []
        self._tags: List[str] = []
        self._reminders: List[TaskReminder] = []

    @classmethod
    def rehydrate(
        cls,
        *,
        id: UUID,
        subscription_id: UUID,
        title: str,
        project_id: Optional[UUID] = None,
        parent_task_id: Optional[UUID] = None,
        note: Optional[str] = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        status: TaskStatus = TaskStatus.TODO,
        is_completed: bool = False,
        completed_at: Optional[datetime] = None,
        is_focused: bool = False,
        is_important: bool = False,
        is_marked_for_today: bool = False,
        created_at: datetime,
        sort_order: int = 0,
        due_date_local: Optional[date] = None,
        due_time_local: Optional[time] = None,
        due_at_utc: Optional[datetime] = None,
        tags: Optional[Iterable[str]] = None,
        reminders: Optional[Iterable[TaskReminder]] = None,
    ) -> "Task":
        """Rebuild a stored or imported task without going through __init__."""
        _require_id(id, "Task id")
        _require_id(subscription_id, "Subscription id")
        normalized_title = _normalize_title(title)
        tag_list = cls._dedupe_tags(tags or [])

        task = cls.__new__(cls)
        task._id = id
        task._subscription_id = subscription_id
        task._title = normalized_title
        task._note = _normalize_note(note)
        task._priority = priority
        task._status = status
        task._is_completed = is_completed
        task._completed_at = ensure_utc(completed_at) if completed_at is not None else None
        task._is_focused = is_focused
        task._is_important = is_important
        task._is_marked_for_today = is_marked_for_today
        task._project_id = project_id
        task._parent_task_id = parent_task_id
        task._sort_order = sort_order if sort_order > 0 else 0
        task._due_date_local = due_date_local
        task._due_time_local = due_time_local if due_date_local is not None else None
        task._due_at_utc = ensure_utc(due_at_utc) if due_at_utc is not None and due_date_local is not None else None
        task._created_at = ensure_utc(created_at)
        task._subtasks = []
        task._tags = tag_list
        task._reminders = list(reminders or [])
        return task

    # ---- read-only state ----

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def subscription_id(self) -> UUID:
        return self._subscription_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def note(self) -> Optional[str]:
        return self._note

    @property
    def priority(self) -> TaskPriority:
        return self._priority

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def is_completed(self) -> bool:
        return self._is_completed

    @property
    def completed_at(self) -> Optional[datetime]:
        return self._completed_at

    @property
    def is_focused(self) -> bool:
        return self._is_focused

    @property
    def is_important(self) -> bool:
        return self._is_important

    @property
    def is_marked_for_today(self) -> bool:
        return self._is_marked_for_today

    @property
    def project_id(self) -> Optional[UUID]:
        return self._project_id

    @property
    def is_unassigned(self) -> bool:
        return self._project_id is None

    @property
    def parent_task_id(self) -> Optional[UUID]:
        return self._parent_task_id

    @property
    def is_subtask(self) -> bool:
        return self._parent_task_id is not None

    @property
    def sort_order(self) -> int:
        return self._sort_order

    @property
    def due_date_local(self) -> Optional[date]:
        return self._due_date_local

    @property
    def due_time_local(self) -> Optional[time]:
        return self._due_time_local

    @property
    def due_at_utc(self) -> Optional[datetime]:
        return self._due_at_utc

    @property
    def has_due_date(self) -> bool:
        return self._due_date_local is not None

    @property
    def has_due_time(self) -> bool:
        return self._due_time_local is not None

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def subtasks(self) -> Tuple["Task", ...]:
        return tuple(self._subtasks)

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(self._tags)

    @property
    def reminders(self) -> Tuple[TaskReminder, ...]:
        return tuple(self._reminders)

    def iter_subtree(self) -> Iterator["Task"]:
        """Pre-order walk over this task and every descendant, each visited once."""
        stack = [self]
        seen = set()
        while stack:
            current = stack.pop()
            if current.id in seen:
                continue
            seen.add(current.id)
            yield current
            # reversed so siblings come out in list order
            stack.extend(reversed(current._subtasks))

    # ---- completion ----

    def complete(self, now: Optional[datetime] = None) -> None:
        """Complete this task and every not-yet-completed task below it."""
        if self._is_completed:
            return

        stamp = ensure_utc(now) if now is not None else utc_now()
        for task in self.iter_subtree():
            if task._is_completed:
                continue
            task._is_completed = True
            task._completed_at = stamp

    def uncomplete(self) -> None:
        """Only this task; subtasks and status stay as they are."""
        if not self._is_completed:
            return
        self._is_completed = False
        self._completed_at = None

    # ---- hierarchy and project assignment ----

    def add_subtask(self, candidate: "Task") -> None:
        if candidate is None:
            raise ValidationError("Subtask cannot be empty.")
        if candidate.id == self._id:
            raise InvalidOperationError("Task cannot be its own subtask.")
        if any(existing.id == candidate.id for existing in self._subtasks):
            raise InvalidOperationError("Subtask is already attached to this task.")
        if candidate.subscription_id != self._subscription_id:
            raise TenantIsolationError("Subtask subscription must match parent task subscription.")
        if any(node.id == self._id for node in candidate.iter_subtree()):
            raise InvalidOperationError("Task cannot become a subtask of its own descendant.")

        next_sort_order = max((existing.sort_order for existing in self._subtasks), default=-1) + 1

        candidate._parent_task_id = self._id
        candidate._set_project_cascade(self._project_id)
        candidate._sort_order = next_sort_order
        self._subtasks.append(candidate)

    def attach_loaded_subtask(self, subtask: "Task") -> None:
        """Re-link a stored subtask to its parent while rebuilding a tree."""
        if subtask.parent_task_id != self._id:
            raise InvalidOperationError("Subtask does not reference this task as parent.")
        if subtask.subscription_id != self._subscription_id:
            raise TenantIsolationError("Subtask subscription must match parent task subscription.")
        if any(existing.id == subtask.id for existing in self._subtasks):
            return
        self._subtasks.append(subtask)

    def assign_to_project(self, project_id: UUID) -> None:
        _require_id(project_id, "Project id")
        self._set_project_cascade(project_id)

    def move_to_project(self, project_id: UUID) -> None:
        self.assign_to_project(project_id)

    def unassign_from_project(self) -> None:
        self._set_project_cascade(None)

    def _set_project_cascade(self, project_id: Optional[UUID]) -> None:
        for task in self.iter_subtree():
            task._project_id = project_id

    # ---- simple attributes ----

    def update_title(self, new_title: str) -> None:
        self._title = _normalize_title(new_title)

    def update_note(self, new_note: Optional[str]) -> None:
        """Blank input clears the note."""
        self._note = _normalize_note(new_note)

    def set_priority(self, priority: TaskPriority) -> None:
        if not isinstance(priority, TaskPriority):
            raise ValidationError(f"Unknown priority '{priority}'.")
        self._priority = priority

    def set_status(self, status: TaskStatus) -> None:
        if not isinstance(status, TaskStatus):
            raise ValidationError(f"Unknown status '{status}'.")
        self._status = status

    def set_sort_order(self, sort_order: int) -> None:
        if sort_order is None or sort_order < 0:
            raise ValidationError("Sort order must be zero or greater.")
        self._sort_order = sort_order

    def toggle_focus(self) -> None:
        self._is_focused = not self._is_focused

    def toggle_important(self) -> None:
        if self._parent_task_id is not None:
            raise InvalidOperationError("Subtasks cannot be marked as important.")
        self._is_important = not self._is_important

    def toggle_today_mark(self) -> None:
        self._is_marked_for_today = not self._is_marked_for_today

    # ---- scheduling ----

    def set_due_date(self, due_date_local: date) -> None:
        """Date-only due date; any previous time and UTC instant are dropped."""
        _require_due_date(due_date_local)
        self._due_date_local = due_date_local
        self._due_time_local = None
        self._due_at_utc = None

    def set_due_date_time(self, due_date_local: date, due_time_local: time, time_zone: tzinfo) -> None:
        if time_zone is None:
            raise ValidationError("Time zone is required.")
        _require_due_date(due_date_local)
        if due_time_local is None:
            raise ValidationError("Due time is required.")

        due_at = local_to_utc(due_date_local, due_time_local, time_zone)

        self._due_date_local = due_date_local
        self._due_time_local = due_time_local.replace(tzinfo=None)
        self._due_at_utc = due_at

    def clear_due_date(self) -> None:
        self._due_date_local = None
        self._due_time_local = None
        self._due_at_utc = None

    # ---- reminders ----

    def add_relative_reminder(self, minutes_before: int) -> TaskReminder:
        reminder = TaskReminder.create_relative(self._id, minutes_before, self._due_at_utc)
        self._reminders.append(reminder)
        return reminder

    def add_on_time_reminder(self) -> TaskReminder:
        return self.add_relative_reminder(0)

    def add_date_only_reminder(self, fallback_local_time: time, time_zone: tzinfo) -> TaskReminder:
        if self._due_date_local is None:
            raise InvalidOperationError("Date-only reminder requires a due date.")
        reminder = TaskReminder.create_date_only_fallback(
            self._id, self._due_date_local, fallback_local_time, time_zone
        )
        self._reminders.append(reminder)
        return reminder

    def remove_reminder(self, reminder_id: UUID) -> None:
        self._reminders = [r for r in self._reminders if r.id != reminder_id]

    def mark_reminder_sent(self, reminder_id: UUID, sent_at_utc: datetime) -> None:
        reminder = next((r for r in self._reminders if r.id == reminder_id), None)
        if reminder is None:
            raise EntityNotFoundError("TaskReminder", reminder_id)
        reminder.mark_sent(sent_at_utc)

    # ---- tags ----

    @staticmethod
    def _dedupe_tags(tags: Iterable[str]) -> List[str]:
        result: List[str] = []
        seen = set()
        for tag in tags:
            normalized = _normalize_tag(tag)
            key = normalized.casefold()
            if key in seen:
                continue
            seen.add(key)
            result.append(normalized)
        return result

    def set_tags(self, new_tags: Iterable[str]) -> None:
        if new_tags is None:
            raise ValidationError("Tags cannot be empty.")
        self._tags = self._dedupe_tags(new_tags)

    def add_tag(self, tag: str) -> None:
        normalized = _normalize_tag(tag)
        if any(existing.casefold() == normalized.casefold() for existing in self._tags):
            return
        self._tags.append(normalized)

    def remove_tag(self, tag: str) -> None:
        key = _normalize_tag(tag).casefold()
        self._tags = [existing for existing in self._tags if existing.casefold() != key]

    def __repr__(self):
        return (
            f"<Task(id={self._id}, title='{self._title}', status={self._status.value}, "
            f"project_id={self._project_id}, parent_task_id={self._parent_task_id}, "
            f"sort_order={self._sort_order})>"
        )


def build_forest(tasks: Iterable[Task]) -> List[Task]:
    """
    Link a flat list of tasks into parent/subtask trees by parent_task_id.

    Returns the roots: tasks with no parent, or whose parent is not part of
    the given list. Subtasks are attached in sort order.
    """
    arena = {task.id: task for task in tasks}
    roots: List[Task] = []
    for task in sorted(arena.values(), key=lambda t: (t.sort_order, t.created_at)):
        parent = arena.get(task.parent_task_id) if task.parent_task_id is not None else None
        if parent is None or parent is task:
            roots.append(task)
            continue
        parent.attach_loaded_subtask(task)
    return roots
