"""
Project service - CRUD and presentation settings
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from taskflow.core.errors import ValidationError
from taskflow.domain.enums import ProjectViewType
from taskflow.models.project import Project
from taskflow.models.subscription import Subscription
from taskflow.repositories.task_repository import TaskRepository
from taskflow.services.task_service import require_project

logger = logging.getLogger(__name__)

MAX_PROJECT_NAME_LENGTH = 200


def _normalize_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Project name cannot be empty.")
    trimmed = name.strip()
    if len(trimmed) > MAX_PROJECT_NAME_LENGTH:
        raise ValidationError(f"Project name cannot exceed {MAX_PROJECT_NAME_LENGTH} characters.")
    return trimmed


def list_projects(db: Session, subscription: Subscription) -> List[Project]:
    return (
        db.query(Project)
        .filter(Project.subscription_id == subscription.id)
        .order_by(Project.is_default.desc(), Project.created_at)
        .all()
    )


def get_project(db: Session, subscription: Subscription, project_id: UUID) -> Project:
    return require_project(db, subscription.id, project_id)


def create_project(
    db: Session,
    subscription: Subscription,
    name: str,
    color: Optional[str] = None,
    icon: Optional[str] = None,
    note: Optional[str] = None,
    is_default: bool = False,
) -> Project:
    logger.info(f"Creating project in subscription {subscription.id}. NameLength={len(name or '')}")
    project = Project(
        subscription_id=subscription.id,
        name=_normalize_name(name),
        note=note.strip() if note and note.strip() else None,
        is_default=is_default,
    )
    if color:
        project.color = color.strip()
    if icon:
        project.icon = icon.strip()

    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info(f"Created project {project.id}")
    return project


def rename_project(db: Session, subscription: Subscription, project_id: UUID, new_name: str) -> Project:
    logger.info(f"Renaming project {project_id}. NewNameLength={len(new_name or '')}")
    project = require_project(db, subscription.id, project_id)
    project.name = _normalize_name(new_name)
    db.commit()
    db.refresh(project)
    return project


def update_visuals(
    db: Session,
    subscription: Subscription,
    project_id: UUID,
    color: Optional[str] = None,
    icon: Optional[str] = None,
    note: Optional[str] = None,
) -> Project:
    logger.info(f"Updating visuals for project {project_id}")
    project = require_project(db, subscription.id, project_id)
    if color is not None:
        if not color.strip():
            raise ValidationError("Project color cannot be empty.")
        project.color = color.strip()
    if icon is not None:
        if not icon.strip():
            raise ValidationError("Project icon cannot be empty.")
        project.icon = icon.strip()
    if note is not None:
        project.note = note.strip() or None
    db.commit()
    db.refresh(project)
    return project


def set_view_type(db: Session, subscription: Subscription, project_id: UUID, view_type: ProjectViewType) -> Project:
    if not isinstance(view_type, ProjectViewType):
        raise ValidationError(f"Unknown view type '{view_type}'.")
    logger.info(f"Setting view type {view_type.value} for project {project_id}")
    project = require_project(db, subscription.id, project_id)
    project.view_type = view_type.value
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, subscription: Subscription, project_id: UUID) -> None:
    project = require_project(db, subscription.id, project_id)
    removed = TaskRepository(db).delete_by_project(subscription.id, project_id)
    logger.info(f"Deleting project {project_id} with {removed} top-level task(s)")
    db.delete(project)
    db.commit()
