from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from taskflow.core.config import settings

ALGORITHM = "HS256"


def _encode(subscription_id: UUID, email: str, token_type: str, expire_minutes: int) -> str:
    payload = {
        "subscription_id": str(subscription_id),
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expire_minutes),
        "type": token_type,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def create_access_token(subscription_id: UUID, email: str) -> str:
    return _encode(subscription_id, email, "access", settings.JWT_EXPIRE_MIN)


def create_refresh_token(subscription_id: UUID, email: str) -> str:
    return _encode(subscription_id, email, "refresh", settings.JWT_REFRESH_EXPIRE_MIN)


def verify_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None


def decode_token(token: str, expected_type: str = "access") -> Optional[UUID]:
    """Returns the subscription id carried by a valid token of the given type."""
    payload = verify_token(token)
    if payload is None or payload.get("type") != expected_type:
        return None
    raw = payload.get("subscription_id")
    if not raw:
        return None
    try:
        return UUID(raw)
    except ValueError:
        return None
