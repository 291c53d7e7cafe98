from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
import logging

from backend.app.db.session import get_session
from backend.app.db.models import Subscriber
from backend.app.schemas.activities import SubscribeRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["subscriptions"])


@router.post("/subscribe")
def subscribe(request: SubscribeRequest, session: Session = Depends(get_session)):
    email = request.email.strip()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="Invalid email address")

    existing = session.exec(select(Subscriber).where(Subscriber.email == email)).first()
    if existing:
        return {"success": True, "message": "You are already subscribed to our newsletter!"}

    session.add(Subscriber(email=email))
    session.commit()
    logger.info(f"New newsletter subscriber: {email}")

    return {"success": True, "message": "Thank you for subscribing! Check your email for confirmation."}
