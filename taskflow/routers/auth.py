from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskflow.core.database import get_db
from taskflow.schemas.subscription import (
    LoginRequest,
    RefreshRequest,
    SignupRequest,
    SubscriptionResponse,
    TokenResponse,
)
from taskflow.services import subscription_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    """Create a subscription and seed its system sections."""
    return subscription_service.signup(db, data.name, data.email, data.password, data.time_zone_id)


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    return subscription_service.login(db, credentials.email, credentials.password)


@router.post("/refresh", response_model=TokenResponse)
def refresh(data: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access token."""
    return subscription_service.refresh(db, data.refresh_token)
