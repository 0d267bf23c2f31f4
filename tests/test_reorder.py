from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from taskflow.core.errors import ValidationError
from taskflow.domain.reorder import next_sort_order, reorder_siblings
from taskflow.domain.task import Task

SUB = uuid4()
BASE = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_siblings(count):
    tasks = []
    for index in range(count):
        task = Task(SUB, f"Task {index}", created_at=BASE + timedelta(minutes=index))
        task.set_sort_order(index)
        tasks.append(task)
    return tasks


def test_requested_ids_first_then_rest():
    a, b, c, d = make_siblings(4)
    result = reorder_siblings([a, b, c, d], [c.id, a.id])

    assert [t.id for t in result.ordered] == [c.id, a.id, b.id, d.id]
    assert [t.sort_order for t in result.ordered] == [0, 1, 2, 3]
    assert {t.id for t in result.changed} == {c.id, a.id, b.id}


def test_reorder_is_idempotent():
    siblings = make_siblings(3)
    requested = [siblings[2].id, siblings[0].id, siblings[1].id]
    reorder_siblings(siblings, requested)
    second = reorder_siblings(siblings, requested)

    assert second.changed == []
    assert [t.id for t in second.ordered] == requested


def test_empty_request_keeps_order():
    siblings = make_siblings(3)
    result = reorder_siblings(list(reversed(siblings)), [])
    assert [t.id for t in result.ordered] == [t.id for t in siblings]
    assert result.changed == []


def test_duplicates_rejected_without_mutation():
    a, b, c = make_siblings(3)
    with pytest.raises(ValidationError):
        reorder_siblings([a, b, c], [c.id, b.id, c.id])
    assert [a.sort_order, b.sort_order, c.sort_order] == [0, 1, 2]


def test_foreign_id_rejected_without_mutation():
    a, b = make_siblings(2)
    with pytest.raises(ValidationError):
        reorder_siblings([a, b], [b.id, uuid4()])
    assert [a.sort_order, b.sort_order] == [0, 1]


def test_none_request_rejected():
    with pytest.raises(ValidationError):
        reorder_siblings(make_siblings(1), None)


def test_gaps_are_closed():
    a, b = make_siblings(2)
    b.set_sort_order(7)
    result = reorder_siblings([a, b], [a.id])
    assert [t.sort_order for t in result.ordered] == [0, 1]
    assert result.changed == [b]


def test_next_sort_order():
    assert next_sort_order([]) == 0
    assert next_sort_order(make_siblings(3)) == 3
