from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from uuid import UUID, uuid4

from taskflow.core.errors import InvalidOperationError, ValidationError
from taskflow.core.timecontext import ensure_utc, local_to_utc
from taskflow.domain.enums import TaskReminderMode


class TaskReminder:
    """
    Reminder owned by a single task.

    The trigger instant is computed once, when the reminder is created, and
    never changes afterwards. Changing the task's due date does not move
    existing reminders.
    """

    def __init__(
        self,
        task_id: UUID,
        mode: TaskReminderMode,
        minutes_before: int,
        fallback_local_time: Optional[time],
        trigger_at_utc: datetime,
    ):
        if not task_id:
            raise ValidationError("Task id cannot be empty.")

        self._id = uuid4()
        self._task_id = task_id
        self._mode = mode
        self._minutes_before = minutes_before
        self._fallback_local_time = fallback_local_time
        self._trigger_at_utc = ensure_utc(trigger_at_utc)
        self._sent_at_utc: Optional[datetime] = None

    @classmethod
    def create_relative(cls, task_id: UUID, minutes_before: int, due_at_utc: Optional[datetime]) -> "TaskReminder":
        if due_at_utc is None:
            raise InvalidOperationError("Relative reminder requires a due date and time.")
        if minutes_before < 0:
            raise ValidationError("Minutes before cannot be negative.")

        trigger = ensure_utc(due_at_utc) - timedelta(minutes=minutes_before)
        return cls(task_id, TaskReminderMode.RELATIVE_TO_DUE_DATE_TIME, minutes_before, None, trigger)

    @classmethod
    def create_date_only_fallback(
        cls, task_id: UUID, due_date_local: Optional[date], fallback_local_time: time, time_zone: tzinfo
    ) -> "TaskReminder":
        if time_zone is None:
            raise ValidationError("Time zone is required.")
        if due_date_local is None:
            raise InvalidOperationError("Date-only reminder requires a due date.")
        if fallback_local_time is None:
            raise ValidationError("Fallback local time is required.")

        trigger = local_to_utc(due_date_local, fallback_local_time, time_zone)
        return cls(task_id, TaskReminderMode.DATE_ONLY_FALLBACK_TIME, 0, fallback_local_time, trigger)

    @classmethod
    def rehydrate(
        cls,
        *,
        id: UUID,
        task_id: UUID,
        mode: TaskReminderMode,
        minutes_before: int,
        fallback_local_time: Optional[time],
        trigger_at_utc: datetime,
        sent_at_utc: Optional[datetime] = None,
    ) -> "TaskReminder":
        if not id:
            raise ValidationError("Reminder id cannot be empty.")
        reminder = cls(task_id, mode, max(0, minutes_before), fallback_local_time, trigger_at_utc)
        reminder._id = id
        reminder._sent_at_utc = ensure_utc(sent_at_utc) if sent_at_utc is not None else None
        return reminder

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def task_id(self) -> UUID:
        return self._task_id

    @property
    def mode(self) -> TaskReminderMode:
        return self._mode

    @property
    def minutes_before(self) -> int:
        return self._minutes_before

    @property
    def fallback_local_time(self) -> Optional[time]:
        return self._fallback_local_time

    @property
    def trigger_at_utc(self) -> datetime:
        return self._trigger_at_utc

    @property
    def sent_at_utc(self) -> Optional[datetime]:
        return self._sent_at_utc

    @property
    def is_sent(self) -> bool:
        return self._sent_at_utc is not None

    def mark_sent(self, sent_at_utc: datetime) -> None:
        """First send time wins; later calls are ignored."""
        if sent_at_utc is None:
            raise ValidationError("Sent timestamp must be a valid UTC instant.")
        if self._sent_at_utc is not None:
            return
        self._sent_at_utc = ensure_utc(sent_at_utc)

    def __repr__(self):
        return f"<TaskReminder(id={self._id}, task_id={self._task_id}, mode={self._mode.value}, trigger_at_utc={self._trigger_at_utc.isoformat()})>"
