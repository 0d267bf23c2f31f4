from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskflow.core.database import get_db
from taskflow.models.subscription import Subscription
from taskflow.routers.deps import get_current_subscription
from taskflow.schemas.subscription import (
    ScheduleCreate,
    ScheduleResponse,
    SubscriptionResponse,
    SubscriptionSettingsUpdate,
)
from taskflow.services import subscription_service

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("", response_model=SubscriptionResponse)
def get_subscription(current: Subscription = Depends(get_current_subscription)):
    return current


@router.patch("/settings", response_model=SubscriptionResponse)
def update_settings(
    data: SubscriptionSettingsUpdate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return subscription_service.update_settings(
        db,
        current,
        time_zone_id=data.time_zone_id,
        always_show_completed_tasks=data.always_show_completed_tasks,
    )


@router.get("/schedules", response_model=List[ScheduleResponse])
def list_schedules(current: Subscription = Depends(get_current_subscription)):
    return current.schedules


@router.post("/schedules", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def add_schedule(
    data: ScheduleCreate,
    db: Session = Depends(get_db),
    current: Subscription = Depends(get_current_subscription)
):
    return subscription_service.add_schedule(db, current, data.starts_on, data.ends_on)
