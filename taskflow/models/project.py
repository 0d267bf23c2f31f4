"""Project model"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, String, Uuid

from taskflow.core.database import Base, UTCDateTime
from taskflow.domain.enums import ProjectViewType


class Project(Base):
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subscription_id = Column(Uuid, ForeignKey("subscriptions.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    color = Column(String(32), nullable=False, default="#4f46e5")
    icon = Column(String(64), nullable=False, default="folder")
    note = Column(String, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    view_type = Column(String(16), nullable=False, default=ProjectViewType.LIST.value)

    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
