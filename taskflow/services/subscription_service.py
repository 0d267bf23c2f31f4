"""
Subscription service - sign-up, login and per-subscription settings
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from taskflow.core.config import settings
from taskflow.core.errors import AuthenticationError, InvalidOperationError, ValidationError
from taskflow.core.security import create_access_token, create_refresh_token, decode_token
from taskflow.core.timecontext import TimeContext
from taskflow.models.subscription import Subscription, SubscriptionSchedule
from taskflow.repositories.section_repository import SectionRepository

logger = logging.getLogger(__name__)


def _local_today(subscription: Subscription, now_utc: Optional[datetime] = None) -> date:
    return TimeContext.capture(subscription.time_zone, now_utc).today_local


def signup(
    db: Session, name: str, email: str, password: str, time_zone_id: Optional[str] = None
) -> Subscription:
    if not name or not name.strip():
        raise ValidationError("Subscription name cannot be empty.")
    if not password:
        raise ValidationError("Password cannot be empty.")

    existing = db.query(Subscription).filter(Subscription.email == email).first()
    if existing:
        logger.warning("Rejected sign-up with an email already in use")
        raise InvalidOperationError("Email already in use.")

    subscription = Subscription(name=name.strip(), email=email)
    subscription.set_password(password)
    subscription.set_time_zone(time_zone_id or settings.DEFAULT_TIME_ZONE)
    subscription.add_open_ended_schedule(_local_today(subscription))
    db.add(subscription)
    db.flush()

    SectionRepository(db).ensure_system_sections(subscription.id)
    db.commit()
    db.refresh(subscription)
    logger.info(f"Created subscription {subscription.id} in time zone {subscription.time_zone_id}")
    return subscription


def _issue_tokens(subscription: Subscription, refresh_token: Optional[str] = None) -> dict:
    return {
        "access_token": create_access_token(subscription.id, subscription.email),
        "refresh_token": refresh_token or create_refresh_token(subscription.id, subscription.email),
        "token_type": "bearer",
    }


def login(db: Session, email: str, password: str) -> dict:
    subscription = db.query(Subscription).filter(Subscription.email == email).first()
    if not subscription or not subscription.verify_password(password):
        logger.warning("Rejected login attempt")
        raise AuthenticationError("Invalid email or password")
    if not subscription.is_enabled:
        logger.warning(f"Rejected login for disabled subscription {subscription.id}")
        raise AuthenticationError("Subscription is disabled")
    if not subscription.is_active_at(_local_today(subscription)):
        logger.warning(f"Rejected login for subscription {subscription.id} outside its schedule")
        raise AuthenticationError("Subscription is not active")

    logger.info(f"Subscription {subscription.id} logged in")
    return _issue_tokens(subscription)


def refresh(db: Session, refresh_token: str) -> dict:
    subscription_id = decode_token(refresh_token, expected_type="refresh")
    if subscription_id is None:
        raise AuthenticationError("Invalid refresh token")
    subscription = db.query(Subscription).filter(Subscription.id == subscription_id).first()
    if subscription is None or not subscription.is_enabled:
        raise AuthenticationError("Subscription not found")
    if not subscription.is_active_at(_local_today(subscription)):
        raise AuthenticationError("Subscription is not active")
    return _issue_tokens(subscription, refresh_token)


def update_settings(
    db: Session,
    subscription: Subscription,
    time_zone_id: Optional[str] = None,
    always_show_completed_tasks: Optional[bool] = None,
) -> Subscription:
    if time_zone_id is not None:
        logger.info(f"Changing time zone for subscription {subscription.id} to {time_zone_id}")
        subscription.set_time_zone(time_zone_id)
    if always_show_completed_tasks is not None:
        subscription.always_show_completed_tasks = always_show_completed_tasks
    db.commit()
    db.refresh(subscription)
    return subscription


def add_schedule(
    db: Session, subscription: Subscription, starts_on: date, ends_on: Optional[date] = None
) -> SubscriptionSchedule:
    """Adds an activity window; without an end date it stays open-ended."""
    if ends_on is None:
        schedule = subscription.add_open_ended_schedule(starts_on)
    else:
        schedule = subscription.add_schedule_window(starts_on, ends_on)
    db.commit()
    db.refresh(schedule)
    logger.info(f"Added schedule {schedule.id} to subscription {subscription.id}. StartsOn={starts_on}, EndsOn={ends_on}")
    return schedule
