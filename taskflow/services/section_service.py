"""
My Task Flow service - sections, rules and resolved task lists
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from taskflow.core.errors import InvalidOperationError
from taskflow.core.timecontext import TimeContext
from taskflow.domain.enums import DueBucket
from taskflow.domain.section import Section, resolve_section_tasks
from taskflow.domain.task import Task
from taskflow.models.subscription import Subscription
from taskflow.repositories.section_repository import SectionRepository
from taskflow.repositories.task_repository import TaskRepository

logger = logging.getLogger(__name__)


def get_sections(db: Session, subscription: Subscription) -> List[Section]:
    repo = SectionRepository(db)
    if repo.ensure_system_sections(subscription.id):
        db.commit()
    return repo.get_all(subscription.id)


def get_section(db: Session, subscription: Subscription, section_id: UUID) -> Section:
    return SectionRepository(db).get_by_id(subscription.id, section_id)


def create_section(
    db: Session,
    subscription: Subscription,
    name: str,
    due_bucket: DueBucket = DueBucket.ANY,
    include_assigned_tasks: bool = True,
    include_unassigned_tasks: bool = True,
    include_done_tasks: bool = False,
    include_cancelled_tasks: bool = False,
    sort_order: Optional[int] = None,
) -> Section:
    logger.info(f"Creating section in subscription {subscription.id}. NameLength={len(name or '')}, DueBucket={due_bucket}")
    repo = SectionRepository(db)
    if sort_order is None:
        sort_order = max((s.sort_order for s in repo.get_all(subscription.id)), default=-1) + 1

    section = Section(subscription.id, name, sort_order)
    section.update_rule(
        due_bucket,
        include_assigned_tasks,
        include_unassigned_tasks,
        include_done_tasks,
        include_cancelled_tasks,
    )
    repo.add(section)
    db.commit()
    logger.info(f"Created section {section.id}")
    return section


def rename_section(db: Session, subscription: Subscription, section_id: UUID, new_name: str) -> Section:
    logger.info(f"Renaming section {section_id}. NewNameLength={len(new_name or '')}")
    repo = SectionRepository(db)
    section = repo.get_by_id(subscription.id, section_id)
    section.rename(new_name)
    repo.update(section)
    db.commit()
    return section


def update_section_rule(
    db: Session,
    subscription: Subscription,
    section_id: UUID,
    due_bucket: DueBucket,
    include_assigned_tasks: bool,
    include_unassigned_tasks: bool,
    include_done_tasks: bool,
    include_cancelled_tasks: bool,
) -> Section:
    logger.info(
        f"Updating section rule {section_id}. DueBucket={due_bucket}, Assigned={include_assigned_tasks}, "
        f"Unassigned={include_unassigned_tasks}, Done={include_done_tasks}, Cancelled={include_cancelled_tasks}"
    )
    repo = SectionRepository(db)
    section = repo.get_by_id(subscription.id, section_id)
    section.update_rule(
        due_bucket,
        include_assigned_tasks,
        include_unassigned_tasks,
        include_done_tasks,
        include_cancelled_tasks,
    )
    repo.update(section)
    db.commit()
    return section


def include_task(db: Session, subscription: Subscription, section_id: UUID, task_id: UUID) -> Section:
    logger.info(f"Including task {task_id} in section {section_id}")
    repo = SectionRepository(db)
    section = repo.get_by_id(subscription.id, section_id)
    # raises when the task is missing or owned by another subscription
    TaskRepository(db).get_by_id(subscription.id, task_id)
    section.include_task(task_id)
    repo.update(section)
    db.commit()
    return section


def remove_task(db: Session, subscription: Subscription, section_id: UUID, task_id: UUID) -> Section:
    logger.info(f"Removing task {task_id} from section {section_id}")
    repo = SectionRepository(db)
    section = repo.get_by_id(subscription.id, section_id)
    section.remove_task(task_id)
    repo.update(section)
    db.commit()
    return section


def delete_section(db: Session, subscription: Subscription, section_id: UUID) -> bool:
    repo = SectionRepository(db)
    section = repo.get_by_id(subscription.id, section_id)
    if section.is_system_section:
        logger.warning(f"Rejected delete of system section {section_id}")
        raise InvalidOperationError("System sections cannot be deleted.")

    logger.info(f"Deleting section {section_id}")
    deleted = repo.delete(subscription.id, section_id)
    db.commit()
    return deleted


def get_section_tasks(
    db: Session, subscription: Subscription, section_id: UUID, now_utc: Optional[datetime] = None
) -> List[Task]:
    section = SectionRepository(db).get_by_id(subscription.id, section_id)
    # one snapshot for the whole list
    context = TimeContext.capture(subscription.time_zone, now_utc)
    tasks = TaskRepository(db).get_all(subscription.id)
    resolved = resolve_section_tasks(section, tasks, context)
    logger.debug(f"Resolved {len(resolved)} task(s) for section {section_id} on local date {context.today_local}")
    return resolved


def move_section(db: Session, subscription: Subscription, section_id: UUID, sort_order: int) -> Section:
    logger.info(f"Moving section {section_id} to position {sort_order}")
    repo = SectionRepository(db)
    section = repo.get_by_id(subscription.id, section_id)
    section.reorder(sort_order)
    repo.update(section)
    db.commit()
    return section
