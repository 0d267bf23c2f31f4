"""Task and reminder rows. Behaviour lives in taskflow.domain.task."""

from sqlalchemy import JSON, Boolean, Column, Date, ForeignKey, Index, Integer, String, Time, Uuid
from sqlalchemy.orm import relationship

from taskflow.core.database import Base, UTCDateTime


class TaskRecord(Base):
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True)
    subscription_id = Column(Uuid, ForeignKey("subscriptions.id"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=True, index=True)
    parent_task_id = Column(Uuid, ForeignKey("tasks.id"), nullable=True, index=True)

    title = Column(String(500), nullable=False)
    note = Column(String, nullable=True)
    priority = Column(String(16), nullable=False, default="medium")
    status = Column(String(16), nullable=False, default="todo")
    tags = Column(JSON, nullable=False, default=list)

    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(UTCDateTime, nullable=True)
    is_focused = Column(Boolean, nullable=False, default=False)
    is_important = Column(Boolean, nullable=False, default=False)
    is_marked_for_today = Column(Boolean, nullable=False, default=False)

    sort_order = Column(Integer, nullable=False, default=0)

    due_date_local = Column(Date, nullable=True, index=True)
    due_time_local = Column(Time, nullable=True)
    due_at_utc = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, nullable=False)

    reminders = relationship(
        "TaskReminderRecord",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskReminderRecord.trigger_at_utc",
    )

    __table_args__ = (
        Index("ix_tasks_scope_order", "subscription_id", "project_id", "parent_task_id", "sort_order"),
    )

    def __repr__(self):
        return f"<TaskRecord(id={self.id}, title='{self.title}', project_id={self.project_id}, parent_task_id={self.parent_task_id})>"


class TaskReminderRecord(Base):
    __tablename__ = "task_reminders"

    id = Column(Uuid, primary_key=True)
    task_id = Column(Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    mode = Column(String(32), nullable=False)
    minutes_before = Column(Integer, nullable=False, default=0)
    fallback_local_time = Column(Time, nullable=True)
    trigger_at_utc = Column(UTCDateTime, nullable=False, index=True)
    sent_at_utc = Column(UTCDateTime, nullable=True)

    task = relationship("TaskRecord", back_populates="reminders")
