import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskflow.core.errors import EntityNotFoundError, TenantIsolationError
from taskflow.domain.enums import DueBucket
from taskflow.domain.section import Section, create_default_sections
from taskflow.models.section import SectionRecord, SectionTaskRecord

logger = logging.getLogger(__name__)


def section_from_record(record: SectionRecord) -> Section:
    return Section.rehydrate(
        id=record.id,
        subscription_id=record.subscription_id,
        name=record.name,
        sort_order=record.sort_order or 0,
        is_system_section=bool(record.is_system_section),
        due_bucket=DueBucket(record.due_bucket),
        include_assigned_tasks=bool(record.include_assigned_tasks),
        include_unassigned_tasks=bool(record.include_unassigned_tasks),
        include_done_tasks=bool(record.include_done_tasks),
        include_cancelled_tasks=bool(record.include_cancelled_tasks),
        manual_task_ids=[row.task_id for row in record.manual_tasks],
        system_key=record.system_key,
    )


class SectionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, subscription_id: UUID) -> List[Section]:
        stmt = (
            select(SectionRecord)
            .where(SectionRecord.subscription_id == subscription_id)
            .order_by(SectionRecord.sort_order, SectionRecord.name)
        )
        return [section_from_record(r) for r in self.db.execute(stmt).scalars().all()]

    def get_by_id(self, subscription_id: UUID, section_id: UUID) -> Section:
        stmt = select(SectionRecord).where(
            SectionRecord.id == section_id,
            SectionRecord.subscription_id == subscription_id,
        )
        record = self.db.execute(stmt).scalar_one_or_none()
        if record is None:
            raise EntityNotFoundError("Section", section_id)
        return section_from_record(record)

    def _upsert(self, section: Section) -> SectionRecord:
        record = self.db.get(SectionRecord, section.id)
        if record is None:
            record = SectionRecord(id=section.id, subscription_id=section.subscription_id)
            self.db.add(record)
        elif record.subscription_id != section.subscription_id:
            raise TenantIsolationError("Section belongs to another subscription.")

        record.name = section.name
        record.sort_order = section.sort_order
        record.is_system_section = section.is_system_section
        record.system_key = section.system_key
        record.due_bucket = section.due_bucket.value
        record.include_assigned_tasks = section.include_assigned_tasks
        record.include_unassigned_tasks = section.include_unassigned_tasks
        record.include_done_tasks = section.include_done_tasks
        record.include_cancelled_tasks = section.include_cancelled_tasks

        wanted = set(section.manual_task_ids)
        for row in list(record.manual_tasks):
            if row.task_id not in wanted:
                record.manual_tasks.remove(row)
        present = {row.task_id for row in record.manual_tasks}
        for task_id in section.manual_task_ids:
            if task_id not in present:
                record.manual_tasks.append(SectionTaskRecord(section_id=section.id, task_id=task_id))
        return record

    def add(self, section: Section) -> Section:
        self._upsert(section)
        self.db.flush()
        return section

    def update(self, section: Section) -> Section:
        return self.add(section)

    def delete(self, subscription_id: UUID, section_id: UUID) -> bool:
        record = self.db.execute(
            select(SectionRecord).where(
                SectionRecord.id == section_id,
                SectionRecord.subscription_id == subscription_id,
            )
        ).scalar_one_or_none()
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True

    def ensure_system_sections(self, subscription_id: UUID) -> List[Section]:
        """Seeds the built-in sections that are not present yet.

        Defaults are identified by their system key, so a system section
        whose rule was edited is never seeded a second time.
        """
        existing = {
            section.system_key
            for section in self.get_all(subscription_id)
            if section.is_system_section
        }
        created = []
        for section in create_default_sections(subscription_id):
            if section.system_key in existing:
                continue
            self.add(section)
            created.append(section)
        if created:
            logger.info(f"Seeded {len(created)} system section(s) for subscription {subscription_id}")
        return created
