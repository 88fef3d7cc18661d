from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from guidant import models, schemas
from guidant.api.session import to_session_response
from guidant.database import get_db
from guidant.services import payment_service
from guidant.utils.security import get_current_user

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/sessions/{session_id}/checkout", response_model=schemas.CheckoutOrder)
def create_checkout(
    session_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Order parameters for the gateway's checkout widget."""
    return payment_service.prepare_checkout(db, session_id, current_user.id)


@router.post("/callback", response_model=schemas.SessionResponse)
async def payment_callback(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    # Called by the gateway, not a logged-in user. The signature covers the raw body.
    raw_body = (await request.body()).decode("utf-8", errors="replace")
    session = payment_service.on_payment_succeeded(db, raw_body, x_razorpay_signature)
    return to_session_response(session)
