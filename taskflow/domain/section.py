"""
My Task Flow sections.

A section is a saved rule (due bucket + inclusion flags) plus a list of
manually curated task ids. Manual curation always wins over the rule.
Matching is a pure function of the section, the task and a TimeContext.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from uuid import UUID, uuid4

from taskflow.core.errors import ValidationError
from taskflow.core.timecontext import TimeContext, to_local_date
from taskflow.domain.enums import DueBucket, TaskStatus
from taskflow.domain.task import Task

MAX_SECTION_NAME_LENGTH = 200
RECENT_WINDOW_DAYS = 7

# (name, sort_order, bucket) seeded once per subscription
DEFAULT_SYSTEM_SECTIONS: Tuple[Tuple[str, int, DueBucket], ...] = (
    ("Recent", 0, DueBucket.RECENT),
    ("Today", 1, DueBucket.TODAY),
    ("Important", 2, DueBucket.IMPORTANT),
    ("This Week", 3, DueBucket.THIS_WEEK),
    ("Upcoming", 4, DueBucket.UPCOMING),
)


def _check_sort_order(sort_order: int) -> int:
    if sort_order is None or sort_order < 0:
        raise ValidationError("Sort order must be zero or greater.")
    return sort_order


def _normalize_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Section name cannot be empty.")
    trimmed = name.strip()
    if len(trimmed) > MAX_SECTION_NAME_LENGTH:
        raise ValidationError(f"Section name cannot exceed {MAX_SECTION_NAME_LENGTH} characters.")
    return trimmed


# ---- bucket rules ----
# Each rule: (task, today_local, end_of_week_local, now_utc, time_zone) -> bool

BucketRule = Callable[[Task, date, date, datetime, tzinfo], bool]


def _any(task, today_local, end_of_week_local, now_utc, tz) -> bool:
    return True


def _today(task, today_local, end_of_week_local, now_utc, tz) -> bool:
    return task.is_marked_for_today or task.due_date_local == today_local


def _this_week(task, today_local, end_of_week_local, now_utc, tz) -> bool:
    due = task.due_date_local
    return due is not None and today_local < due <= end_of_week_local


def _upcoming(task, today_local, end_of_week_local, now_utc, tz) -> bool:
    due = task.due_date_local
    return due is not None and due > end_of_week_local


def _no_due_date(task, today_local, end_of_week_local, now_utc, tz) -> bool:
    return task.due_date_local is None


def _important(task, today_local, end_of_week_local, now_utc, tz) -> bool:
    return task.is_important


def _recent(task, today_local, end_of_week_local, now_utc, tz) -> bool:
    created_local = to_local_date(task.created_at, tz)
    now_local = to_local_date(now_utc, tz)
    return created_local >= now_local - timedelta(days=RECENT_WINDOW_DAYS)


_BUCKET_RULES: Dict[DueBucket, BucketRule] = {
    DueBucket.ANY: _any,
    DueBucket.TODAY: _today,
    DueBucket.THIS_WEEK: _this_week,
    DueBucket.UPCOMING: _upcoming,
    DueBucket.NO_DUE_DATE: _no_due_date,
    DueBucket.IMPORTANT: _important,
    DueBucket.RECENT: _recent,
}

_missing_rules = set(DueBucket) - set(_BUCKET_RULES)
if _missing_rules:
    raise RuntimeError(f"No matching rule for due bucket(s): {sorted(b.value for b in _missing_rules)}")


class Section:
    def __init__(self, subscription_id: UUID, name: str, sort_order: int = 0):
        if not subscription_id:
            raise ValidationError("Subscription id cannot be empty.")
        normalized = _normalize_name(name)

        self._id = uuid4()
        self._subscription_id = subscription_id
        self._name = normalized
        self._sort_order = _check_sort_order(sort_order)
        self._is_system_section = False
        self._system_key: Optional[str] = None
        self._due_bucket = DueBucket.ANY
        self._include_assigned_tasks = True
        self._include_unassigned_tasks = True
        self._include_done_tasks = False
        self._include_cancelled_tasks = False
        self._manual_task_ids: List[UUID] = []

    @classmethod
    def create_system(cls, subscription_id: UUID, name: str, sort_order: int, due_bucket: DueBucket) -> "Section":
        section = cls(subscription_id, name, sort_order)
        section._is_system_section = True
        section._system_key = due_bucket.value
        section._due_bucket = due_bucket
        return section

    @classmethod
    def rehydrate(
        cls,
        *,
        id: UUID,
        subscription_id: UUID,
        name: str,
        sort_order: int,
        is_system_section: bool,
        due_bucket: DueBucket,
        include_assigned_tasks: bool,
        include_unassigned_tasks: bool,
        include_done_tasks: bool,
        include_cancelled_tasks: bool,
        manual_task_ids: Iterable[UUID] = (),
        system_key: Optional[str] = None,
    ) -> "Section":
        if not id:
            raise ValidationError("Section id cannot be empty.")
        section = cls(subscription_id, name, sort_order)
        section._id = id
        section._is_system_section = is_system_section
        section._system_key = system_key
        section._due_bucket = due_bucket
        section._include_assigned_tasks = include_assigned_tasks
        section._include_unassigned_tasks = include_unassigned_tasks
        section._include_done_tasks = include_done_tasks
        section._include_cancelled_tasks = include_cancelled_tasks
        for task_id in manual_task_ids:
            if task_id not in section._manual_task_ids:
                section._manual_task_ids.append(task_id)
        return section

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def subscription_id(self) -> UUID:
        return self._subscription_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def sort_order(self) -> int:
        return self._sort_order

    @property
    def is_system_section(self) -> bool:
        return self._is_system_section

    @property
    def system_key(self) -> Optional[str]:
        """Which built-in default this is. Survives rule edits, unlike the bucket."""
        return self._system_key

    @property
    def due_bucket(self) -> DueBucket:
        return self._due_bucket

    @property
    def include_assigned_tasks(self) -> bool:
        return self._include_assigned_tasks

    @property
    def include_unassigned_tasks(self) -> bool:
        return self._include_unassigned_tasks

    @property
    def include_done_tasks(self) -> bool:
        return self._include_done_tasks

    @property
    def include_cancelled_tasks(self) -> bool:
        return self._include_cancelled_tasks

    @property
    def manual_task_ids(self) -> Tuple[UUID, ...]:
        return tuple(self._manual_task_ids)

    def rename(self, new_name: str) -> None:
        self._name = _normalize_name(new_name)

    def reorder(self, sort_order: int) -> None:
        self._sort_order = _check_sort_order(sort_order)

    def update_rule(
        self,
        due_bucket: DueBucket,
        include_assigned_tasks: bool,
        include_unassigned_tasks: bool,
        include_done_tasks: bool,
        include_cancelled_tasks: bool,
    ) -> None:
        """Replaces the bucket and all four flags together."""
        if not isinstance(due_bucket, DueBucket):
            raise ValidationError(f"Unknown due bucket '{due_bucket}'.")
        self._due_bucket = due_bucket
        self._include_assigned_tasks = bool(include_assigned_tasks)
        self._include_unassigned_tasks = bool(include_unassigned_tasks)
        self._include_done_tasks = bool(include_done_tasks)
        self._include_cancelled_tasks = bool(include_cancelled_tasks)

    def include_task(self, task_id: UUID) -> None:
        if not task_id:
            raise ValidationError("Task id cannot be empty.")
        if task_id in self._manual_task_ids:
            return
        self._manual_task_ids.append(task_id)

    def remove_task(self, task_id: UUID) -> None:
        self._manual_task_ids = [existing for existing in self._manual_task_ids if existing != task_id]

    def matches(
        self, task: Task, today_local: date, end_of_week_local: date, now_utc: datetime, time_zone: tzinfo
    ) -> bool:
        if task is None:
            raise ValidationError("Task cannot be empty.")
        if time_zone is None:
            raise ValidationError("Time zone is required.")

        if task.id in self._manual_task_ids:
            return True

        is_assigned = task.project_id is not None
        if is_assigned and not self._include_assigned_tasks:
            return False
        if not is_assigned and not self._include_unassigned_tasks:
            return False

        if task.status == TaskStatus.DONE and not self._include_done_tasks:
            return False
        if task.status == TaskStatus.CANCELLED and not self._include_cancelled_tasks:
            return False

        rule = _BUCKET_RULES.get(self._due_bucket)
        if rule is None:
            return False
        return rule(task, today_local, end_of_week_local, now_utc, time_zone)

    def matches_in(self, task: Task, context: TimeContext) -> bool:
        return self.matches(
            task, context.today_local, context.end_of_week_local, context.now_utc, context.time_zone
        )

    def __repr__(self):
        return f"<Section(id={self._id}, name='{self._name}', due_bucket={self._due_bucket.value}, system={self._is_system_section})>"


def create_default_sections(subscription_id: UUID) -> List[Section]:
    return [
        Section.create_system(subscription_id, name, sort_order, bucket)
        for name, sort_order, bucket in DEFAULT_SYSTEM_SECTIONS
    ]


def section_sort_key(task: Task):
    """Dated first, then by date, then date-only before timed on the same day."""
    has_due = 0 if task.due_date_local is not None else 1
    due_date = task.due_date_local or date.max
    due_time = (0, time.min) if task.due_time_local is None else (1, task.due_time_local)
    return (has_due, due_date, due_time)


def resolve_section_tasks(section: Section, tasks: Iterable[Task], context: TimeContext) -> List[Task]:
    matched = [task for task in tasks if section.matches_in(task, context)]
    # newest first as the final tiebreak, id keeps equal timestamps deterministic
    matched.sort(key=lambda t: str(t.id))
    matched.sort(key=lambda t: t.created_at, reverse=True)
    matched.sort(key=section_sort_key)
    return matched
