from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from taskflow.core.database import get_db
from taskflow.models.subscription import Subscription
from taskflow.routers.deps import get_current_subscription
from taskflow.schemas.focus import FocusSessionResponse, FocusStart
from taskflow.services import focus_service

router = APIRouter(prefix="/focus-sessions", tags=["focus"])


@router.post("", response_model=FocusSessionResponse, status_code=status.HTTP_201_CREATED)
def start_session(
    data: FocusStart,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return focus_service.start_session(db, current, data.task_id)


@router.post("/end", response_model=Optional[FocusSessionResponse])
def end_session(
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    """Ends the running session; null when nothing was running."""
    return focus_service.end_current_session(db, current)


@router.get("", response_model=List[FocusSessionResponse])
def recent_sessions(
    take: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return focus_service.get_recent_sessions(db, current, take)
