"""
Focus service - start, end and list focus timer sessions
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from taskflow.models.focus import FocusSession
from taskflow.models.subscription import Subscription
from taskflow.repositories.task_repository import TaskRepository

logger = logging.getLogger(__name__)


def get_running_session(db: Session, subscription: Subscription) -> Optional[FocusSession]:
    return (
        db.query(FocusSession)
        .filter(FocusSession.subscription_id == subscription.id, FocusSession.ended_at.is_(None))
        .order_by(FocusSession.started_at.desc())
        .first()
    )


def start_session(
    db: Session, subscription: Subscription, task_id: Optional[UUID] = None, now_utc: Optional[datetime] = None
) -> FocusSession:
    """Starts a new session, ending the running one first."""
    logger.info(f"Starting focus session. TaskId={task_id}")
    if task_id is not None:
        # raises when the task is missing or owned by another subscription
        TaskRepository(db).get_by_id(subscription.id, task_id)

    running = get_running_session(db, subscription)
    if running is not None:
        logger.info(f"Ending running focus session {running.id} before starting a new one")
        running.end(now_utc)

    session = FocusSession(subscription_id=subscription.id, task_id=task_id)
    if now_utc is not None:
        session.started_at = now_utc
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"Started focus session {session.id} for subscription {subscription.id}")
    return session


def end_current_session(
    db: Session, subscription: Subscription, now_utc: Optional[datetime] = None
) -> Optional[FocusSession]:
    running = get_running_session(db, subscription)
    if running is None:
        logger.debug("No running focus session to end")
        return None

    running.end(now_utc)
    db.commit()
    db.refresh(running)
    logger.info(f"Ended focus session {running.id}")
    return running


def get_recent_sessions(db: Session, subscription: Subscription, take: int = 20) -> List[FocusSession]:
    return (
        db.query(FocusSession)
        .filter(FocusSession.subscription_id == subscription.id)
        .order_by(FocusSession.started_at.desc())
        .limit(take)
        .all()
    )
