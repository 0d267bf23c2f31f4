from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from taskflow.core.database import get_db
from taskflow.core.security import decode_token
from taskflow.models.subscription import Subscription


def get_current_subscription(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None)
) -> Subscription:
    # Check token
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = authorization.replace("Bearer ", "")
    subscription_id = decode_token(token)

    if not subscription_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    subscription = db.query(Subscription).filter(Subscription.id == subscription_id).first()
    if not subscription or not subscription.is_enabled:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Subscription not found")

    return subscription
