"""My Task Flow section rows. Matching lives in taskflow.domain.section."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from taskflow.core.database import Base


class SectionRecord(Base):
    __tablename__ = "task_flow_sections"

    id = Column(Uuid, primary_key=True)
    subscription_id = Column(Uuid, ForeignKey("subscriptions.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_system_section = Column(Boolean, nullable=False, default=False)
    # set only on seeded defaults, e.g. "today"
    system_key = Column(String(32), nullable=True)
    due_bucket = Column(String(32), nullable=False, default="any")

    include_assigned_tasks = Column(Boolean, nullable=False, default=True)
    include_unassigned_tasks = Column(Boolean, nullable=False, default=True)
    include_done_tasks = Column(Boolean, nullable=False, default=False)
    include_cancelled_tasks = Column(Boolean, nullable=False, default=False)

    manual_tasks = relationship(
        "SectionTaskRecord",
        back_populates="section",
        cascade="all, delete-orphan",
    )


class SectionTaskRecord(Base):
    __tablename__ = "task_flow_section_tasks"

    section_id = Column(Uuid, ForeignKey("task_flow_sections.id", ondelete="CASCADE"), primary_key=True)
    task_id = Column(Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True, index=True)

    section = relationship("SectionRecord", back_populates="manual_tasks")
