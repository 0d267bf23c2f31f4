from enum import Enum
from functools import total_ordering


@total_ordering
class _OrderedEnum(Enum):
    """Enum whose members compare by declaration order."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank < other.rank


class TaskPriority(_OrderedEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(_OrderedEnum):
    TODO = "todo"
    DOING = "doing"
    DONE = "done"
    CANCELLED = "cancelled"


class TaskReminderMode(Enum):
    RELATIVE_TO_DUE_DATE_TIME = "relative_to_due_date_time"
    DATE_ONLY_FALLBACK_TIME = "date_only_fallback_time"


class DueBucket(Enum):
    # no_due_date and important are not due-date buckets but share the slot
    ANY = "any"
    TODAY = "today"
    THIS_WEEK = "this_week"
    UPCOMING = "upcoming"
    RECENT = "recent"
    NO_DUE_DATE = "no_due_date"
    IMPORTANT = "important"


class ProjectViewType(Enum):
    LIST = "list"
    BOARD = "board"


class SubscriptionTier(Enum):
    FREE = "free"
    PLUS = "plus"
    PRO = "pro"
