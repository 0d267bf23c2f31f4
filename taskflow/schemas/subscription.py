from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from taskflow.domain.enums import SubscriptionTier


class SignupRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    time_zone_id: Optional[str] = None


class SubscriptionResponse(BaseModel):
    id: UUID
    name: str
    email: str
    tier: SubscriptionTier
    time_zone_id: str
    always_show_completed_tasks: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionSettingsUpdate(BaseModel):
    time_zone_id: Optional[str] = None
    always_show_completed_tasks: Optional[bool] = None


class ScheduleCreate(BaseModel):
    starts_on: date
    ends_on: Optional[date] = None


class ScheduleResponse(BaseModel):
    id: UUID
    starts_on: date
    ends_on: Optional[date] = None
    is_open_ended: bool

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
