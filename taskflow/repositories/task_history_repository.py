import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from taskflow.models.task_history import TaskHistoryRecord

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_COUNT = 20


class TaskHistoryRepository:
    """Remembers task and subtask titles per subscription, matched case-insensitively."""

    def __init__(self, db: Session):
        self.db = db

    def register_usage(
        self, subscription_id: UUID, name: Optional[str], is_subtask_name: bool, now_utc: Optional[datetime] = None
    ) -> Optional[TaskHistoryRecord]:
        if name is None or not name.strip():
            logger.debug("Skipping task history registration for blank name")
            return None

        normalized = name.strip()
        now_utc = now_utc or datetime.now(timezone.utc)
        record = self.db.execute(
            select(TaskHistoryRecord).where(
                TaskHistoryRecord.subscription_id == subscription_id,
                TaskHistoryRecord.is_subtask_name == is_subtask_name,
                func.lower(TaskHistoryRecord.name) == normalized.lower(),
            )
        ).scalars().first()

        if record is None:
            logger.debug(f"New task history entry for subscription {subscription_id}. IsSubTaskName={is_subtask_name}")
            record = TaskHistoryRecord(
                subscription_id=subscription_id,
                name=normalized,
                is_subtask_name=is_subtask_name,
                last_used_at=now_utc,
                usage_count=1,
            )
            self.db.add(record)
        else:
            record.mark_used(now_utc)
        self.db.flush()
        return record

    def get_suggestions(
        self,
        subscription_id: UUID,
        prefix: Optional[str],
        is_subtask_name: bool,
        take: int = DEFAULT_SUGGESTION_COUNT,
    ) -> List[str]:
        stmt = select(TaskHistoryRecord.name).where(
            TaskHistoryRecord.subscription_id == subscription_id,
            TaskHistoryRecord.is_subtask_name == is_subtask_name,
        )
        normalized = (prefix or "").strip().lower()
        if normalized:
            stmt = stmt.where(func.lower(TaskHistoryRecord.name).startswith(normalized, autoescape=True))

        stmt = stmt.order_by(
            TaskHistoryRecord.usage_count.desc(),
            TaskHistoryRecord.last_used_at.desc(),
            TaskHistoryRecord.name,
        ).limit(take)
        return list(self.db.execute(stmt).scalars().all())
