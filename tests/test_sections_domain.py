from datetime import date, datetime, time, timedelta, timezone
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from taskflow.core.errors import ValidationError
from taskflow.core.timecontext import TimeContext
from taskflow.domain.enums import DueBucket, TaskStatus
from taskflow.domain.section import (
    DEFAULT_SYSTEM_SECTIONS,
    Section,
    create_default_sections,
    resolve_section_tasks,
)
from taskflow.domain.task import Task

BERLIN = ZoneInfo("Europe/Berlin")
SUB = uuid4()

# Wednesday 2026-02-11, 12:00 in Berlin
NOW = datetime(2026, 2, 11, 11, 0, tzinfo=timezone.utc)
CTX = TimeContext.capture(BERLIN, NOW)


def make_task(title="Task", project_id=None, created_at=None):
    return Task(SUB, title, project_id, created_at=created_at or NOW - timedelta(days=30))


def section_for(bucket, **flags):
    section = Section(SUB, "Custom")
    section.update_rule(
        bucket,
        flags.get("assigned", True),
        flags.get("unassigned", True),
        flags.get("done", False),
        flags.get("cancelled", False),
    )
    return section


def test_context_snapshot():
    assert CTX.today_local == date(2026, 2, 11)
    assert CTX.end_of_week_local == date(2026, 2, 15)


# ========== SECTION LIFECYCLE ==========
def test_new_section_defaults():
    section = Section(SUB, "  Inbox  ")
    assert section.name == "Inbox"
    assert section.due_bucket == DueBucket.ANY
    assert section.include_assigned_tasks and section.include_unassigned_tasks
    assert not section.include_done_tasks and not section.include_cancelled_tasks
    assert section.is_system_section is False


def test_blank_name_rejected():
    with pytest.raises(ValidationError):
        Section(SUB, "   ")


def test_default_sections():
    sections = create_default_sections(SUB)
    assert [s.due_bucket for s in sections] == [bucket for _, _, bucket in DEFAULT_SYSTEM_SECTIONS]
    assert all(s.is_system_section for s in sections)


def test_include_task_is_idempotent():
    section = Section(SUB, "Picked")
    task_id = uuid4()
    section.include_task(task_id)
    section.include_task(task_id)
    assert section.manual_task_ids == (task_id,)
    section.remove_task(task_id)
    section.remove_task(task_id)
    assert section.manual_task_ids == ()


def test_sort_order_cannot_be_negative():
    with pytest.raises(ValidationError):
        Section(SUB, "Broken", -1)

    section = Section(SUB, "Fine", 2)
    with pytest.raises(ValidationError):
        section.reorder(-1)
    assert section.sort_order == 2


def test_system_key_survives_rule_change():
    today = next(s for s in create_default_sections(SUB) if s.due_bucket == DueBucket.TODAY)
    today.update_rule(DueBucket.ANY, True, True, False, False)
    assert today.system_key == "today"
    assert Section(SUB, "Custom").system_key is None


def test_update_rule_rejects_unknown_bucket():
    section = Section(SUB, "Custom")
    with pytest.raises(ValidationError):
        section.update_rule("tomorrow", False, False, True, True)
    assert section.due_bucket == DueBucket.ANY
    assert section.include_assigned_tasks is True


# ========== BUCKETS ==========
def test_today_bucket_by_date_or_mark():
    section = section_for(DueBucket.TODAY)
    due_today = make_task("due")
    due_today.set_due_date(date(2026, 2, 11))
    marked = make_task("marked")
    marked.toggle_today_mark()
    tomorrow = make_task("tomorrow")
    tomorrow.set_due_date(date(2026, 2, 12))

    assert section.matches_in(due_today, CTX)
    assert section.matches_in(marked, CTX)
    assert not section.matches_in(tomorrow, CTX)


def test_today_uses_local_date_not_utc():
    # 23:30 UTC on the 10th is already the 11th in Berlin
    late = datetime(2026, 2, 10, 23, 30, tzinfo=timezone.utc)
    ctx = TimeContext.capture(BERLIN, late)
    task = make_task()
    task.set_due_date(date(2026, 2, 11))
    assert section_for(DueBucket.TODAY).matches_in(task, ctx)


def test_this_week_excludes_today_includes_sunday():
    section = section_for(DueBucket.THIS_WEEK)
    today = make_task()
    today.set_due_date(date(2026, 2, 11))
    sunday = make_task()
    sunday.set_due_date(date(2026, 2, 15))
    monday = make_task()
    monday.set_due_date(date(2026, 2, 16))

    assert not section.matches_in(today, CTX)
    assert section.matches_in(sunday, CTX)
    assert not section.matches_in(monday, CTX)


def test_upcoming_after_end_of_week():
    section = section_for(DueBucket.UPCOMING)
    monday = make_task()
    monday.set_due_date(date(2026, 2, 16))
    undated = make_task()
    assert section.matches_in(monday, CTX)
    assert not section.matches_in(undated, CTX)


def test_no_due_date_and_important_buckets():
    undated = make_task()
    dated = make_task()
    dated.set_due_date(date(2026, 2, 20))
    dated.toggle_important()

    assert section_for(DueBucket.NO_DUE_DATE).matches_in(undated, CTX)
    assert not section_for(DueBucket.NO_DUE_DATE).matches_in(dated, CTX)
    assert section_for(DueBucket.IMPORTANT).matches_in(dated, CTX)
    assert not section_for(DueBucket.IMPORTANT).matches_in(undated, CTX)


def test_recent_window():
    section = section_for(DueBucket.RECENT)
    fresh = make_task(created_at=NOW - timedelta(days=7))
    stale = make_task(created_at=NOW - timedelta(days=8))
    assert section.matches_in(fresh, CTX)
    assert not section.matches_in(stale, CTX)


# ========== FLAGS ==========
def test_assignment_flags():
    assigned = make_task(project_id=uuid4())
    unassigned = make_task()
    only_unassigned = section_for(DueBucket.ANY, assigned=False)
    assert not only_unassigned.matches_in(assigned, CTX)
    assert only_unassigned.matches_in(unassigned, CTX)


def test_done_and_cancelled_hidden_by_default():
    done = make_task()
    done.set_status(TaskStatus.DONE)
    cancelled = make_task()
    cancelled.set_status(TaskStatus.CANCELLED)

    default = section_for(DueBucket.ANY)
    assert not default.matches_in(done, CTX)
    assert not default.matches_in(cancelled, CTX)

    everything = section_for(DueBucket.ANY, done=True, cancelled=True)
    assert everything.matches_in(done, CTX)
    assert everything.matches_in(cancelled, CTX)


def test_manual_inclusion_overrides_rule():
    section = section_for(DueBucket.TODAY, assigned=False)
    task = make_task(project_id=uuid4())
    task.set_status(TaskStatus.DONE)
    assert not section.matches_in(task, CTX)

    section.include_task(task.id)
    assert section.matches_in(task, CTX)


def test_manual_inclusion_ignores_unassigned_and_done_flags():
    section = section_for(DueBucket.ANY, unassigned=False)
    task = make_task()
    task.set_status(TaskStatus.DONE)
    assert not section.matches_in(task, CTX)

    section.include_task(task.id)
    assert section.matches_in(task, CTX)


def test_matches_requires_time_zone():
    with pytest.raises(ValidationError):
        Section(SUB, "S").matches(make_task(), CTX.today_local, CTX.end_of_week_local, NOW, None)


# ========== ORDERING ==========
def test_resolve_orders_dated_first_then_time_then_newest():
    older = make_task("older", created_at=NOW - timedelta(days=3))
    older.set_due_date(date(2026, 2, 12))
    newer = make_task("newer", created_at=NOW - timedelta(days=1))
    newer.set_due_date(date(2026, 2, 12))
    timed = make_task("timed")
    timed.set_due_date_time(date(2026, 2, 12), time(9, 0), BERLIN)
    earlier_day = make_task("earlier_day")
    earlier_day.set_due_date_time(date(2026, 2, 11), time(18, 0), BERLIN)
    undated = make_task("undated")

    resolved = resolve_section_tasks(
        section_for(DueBucket.ANY), [undated, timed, older, newer, earlier_day], CTX
    )

    assert [t.title for t in resolved] == ["earlier_day", "newer", "older", "timed", "undated"]
