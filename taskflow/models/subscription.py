"""Subscription model: the tenant that owns projects, tasks and sections."""

import uuid
from datetime import date, datetime, timezone

import bcrypt
from sqlalchemy import Boolean, Column, Date, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from taskflow.core.config import settings
from taskflow.core.database import Base, UTCDateTime
from taskflow.core.errors import ValidationError
from taskflow.core.timecontext import resolve_time_zone
from taskflow.domain.enums import SubscriptionTier


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    tier = Column(String(16), nullable=False, default=SubscriptionTier.FREE.value)
    is_enabled = Column(Boolean, nullable=False, default=True)
    time_zone_id = Column(String(128), nullable=False, default=settings.DEFAULT_TIME_ZONE)

    # Settings
    always_show_completed_tasks = Column(Boolean, nullable=False, default=False)

    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    schedules = relationship(
        "SubscriptionSchedule",
        back_populates="subscription",
        cascade="all, delete-orphan",
        order_by="SubscriptionSchedule.starts_on",
    )

    def set_password(self, password: str):
        self.password_hash = bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()

    def verify_password(self, password: str) -> bool:
        return bcrypt.checkpw(password.encode(), self.password_hash.encode())

    def set_time_zone(self, time_zone_id: str):
        # Unknown zones are rejected here, never deep inside the domain
        resolve_time_zone(time_zone_id)
        self.time_zone_id = time_zone_id.strip()

    @property
    def time_zone(self):
        return resolve_time_zone(self.time_zone_id)

    def add_open_ended_schedule(self, starts_on: date) -> "SubscriptionSchedule":
        schedule = SubscriptionSchedule(starts_on=starts_on, ends_on=None)
        self.schedules.append(schedule)
        return schedule

    def add_schedule_window(self, starts_on: date, ends_on: date) -> "SubscriptionSchedule":
        if ends_on < starts_on:
            raise ValidationError("Schedule end must be equal to or after schedule start.")
        schedule = SubscriptionSchedule(starts_on=starts_on, ends_on=ends_on)
        self.schedules.append(schedule)
        return schedule

    def is_active_at(self, current_date: date) -> bool:
        """Enabled and inside at least one schedule."""
        if not self.is_enabled:
            return False
        return any(schedule.is_active_at(current_date) for schedule in self.schedules)


class SubscriptionSchedule(Base):
    """Inclusive date window in which a subscription may be used. No end date means open-ended."""

    __tablename__ = "subscription_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subscription_id = Column(Uuid, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False, index=True)
    starts_on = Column(Date, nullable=False)
    ends_on = Column(Date, nullable=True)

    subscription = relationship("Subscription", back_populates="schedules")

    @property
    def is_open_ended(self) -> bool:
        return self.ends_on is None

    def is_active_at(self, current_date: date) -> bool:
        if current_date < self.starts_on:
            return False
        if self.is_open_ended:
            return True
        return current_date <= self.ends_on
