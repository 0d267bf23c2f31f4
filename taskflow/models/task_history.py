"""Task-name history rows backing title autocomplete."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Uuid

from taskflow.core.database import Base, UTCDateTime


class TaskHistoryRecord(Base):
    __tablename__ = "task_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subscription_id = Column(Uuid, ForeignKey("subscriptions.id"), nullable=False)
    name = Column(String(500), nullable=False)
    is_subtask_name = Column(Boolean, nullable=False, default=False)
    last_used_at = Column(UTCDateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    usage_count = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("ix_task_history_lookup", "subscription_id", "is_subtask_name", "name"),
    )

    def mark_used(self, now_utc: Optional[datetime] = None):
        self.last_used_at = now_utc or datetime.now(timezone.utc)
        self.usage_count = (self.usage_count or 0) + 1

    def __repr__(self):
        return f"<TaskHistoryRecord(name='{self.name}', subtask={self.is_subtask_name}, used={self.usage_count})>"
