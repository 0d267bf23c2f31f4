"""Focus timer sessions. At most one session per subscription is running."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, Uuid

from taskflow.core.database import Base, UTCDateTime


class FocusSession(Base):
    __tablename__ = "focus_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subscription_id = Column(Uuid, ForeignKey("subscriptions.id"), nullable=False, index=True)
    task_id = Column(Uuid, ForeignKey("tasks.id"), nullable=True)
    started_at = Column(UTCDateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    ended_at = Column(UTCDateTime, nullable=True)

    @property
    def is_completed(self) -> bool:
        return self.ended_at is not None

    def end(self, now_utc: Optional[datetime] = None):
        # ending twice keeps the first end time
        if self.is_completed:
            return
        self.ended_at = now_utc or datetime.now(timezone.utc)

    def duration(self, now_utc: Optional[datetime] = None) -> timedelta:
        end = self.ended_at if self.is_completed else (now_utc or datetime.now(timezone.utc))
        return end - self.started_at

    @property
    def duration_seconds(self) -> int:
        return int(self.duration().total_seconds())

    def __repr__(self):
        return f"<FocusSession(id={self.id}, task_id={self.task_id}, running={not self.is_completed})>"
