"""
Manual ordering within a sibling scope.

A sibling scope is either "top-level tasks of one project (or of the inbox)"
or "subtasks of one parent". sort_order is unique inside a scope.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence
from uuid import UUID

from taskflow.core.errors import ValidationError
from taskflow.domain.task import Task


@dataclass
class ReorderResult:
    ordered: List[Task]
    changed: List[Task] = field(default_factory=list)


def _current_order(siblings: Iterable[Task]) -> List[Task]:
    return sorted(siblings, key=lambda task: (task.sort_order, task.created_at))


def next_sort_order(siblings: Iterable[Task]) -> int:
    return max((task.sort_order for task in siblings), default=-1) + 1


def reorder_siblings(siblings: Sequence[Task], ordered_task_ids: Sequence[UUID]) -> ReorderResult:
    """
    Put the requested ids first, in the given order, then every other sibling
    in its current order, and renumber the whole scope 0..n-1.

    The request is validated completely before any task is touched.
    """
    if ordered_task_ids is None:
        raise ValidationError("Requested order cannot be empty.")

    if len(ordered_task_ids) == 0:
        return ReorderResult(ordered=_current_order(siblings))

    seen = set()
    for task_id in ordered_task_ids:
        if task_id in seen:
            raise ValidationError(f"Task id '{task_id}' appears more than once in requested order.")
        seen.add(task_id)

    by_id = {task.id: task for task in siblings}
    for task_id in ordered_task_ids:
        if task_id not in by_id:
            raise ValidationError(f"Task id '{task_id}' is not part of the target list.")

    ordered = [by_id[task_id] for task_id in ordered_task_ids]
    ordered.extend(task for task in _current_order(siblings) if task.id not in seen)

    changed = []
    for index, task in enumerate(ordered):
        if task.sort_order != index:
            task.set_sort_order(index)
            changed.append(task)

    return ReorderResult(ordered=ordered, changed=changed)
