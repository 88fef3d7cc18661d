# guidant/services/payment_service.py
"""
Payment gateway adapter.

The gateway itself is external: this module prepares the checkout order the
client hands to it and turns a verified payment (gateway callback or signed
checkout result) into a ``record_payment`` call on the session ledger.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from guidant import schemas
from guidant.config import settings
from guidant.exceptions import (
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guidant.crud import session as session_crud
from guidant.models.enums import TERMINAL_SESSION_STATUSES
from guidant.models.session import Session as SessionModel
from guidant.services import gateway, lifecycle
from guidant.services.status_projector import has_real_payment

logger = logging.getLogger(__name__)


def prepare_checkout(db: Session, session_id: int, acting_user_id: int) -> Dict[str, Any]:
    session = session_crud.get_session(db, session_id)
    if not session:
        raise NotFoundError("Session", session_id)
    if session.student_id != acting_user_id:
        raise PermissionDeniedError("Only the session's student can pay for it")
    if session.status in TERMINAL_SESSION_STATUSES:
        raise InvalidOperationError(
            f"Cannot pay for a {session.status} session", details={"session_id": session.id}
        )
    if has_real_payment(session.payment_id):
        raise InvalidOperationError("Session is already paid", details={"session_id": session.id})
    if session.price is None or session.price <= 0:
        raise InvalidOperationError(
            "Session price must be greater than zero", details={"session_id": session.id}
        )

    # Gateways expect the smallest currency unit
    amount = int(round(session.price * 100))
    order = gateway.create_order(amount, settings.PAYMENT_CURRENCY, f"session-{session.id}")
    if order is not None:
        logger.info("Gateway order %s created for session %s", order["id"], session.id)

    return {
        "session_id": session.id,
        "amount": amount,
        "currency": settings.PAYMENT_CURRENCY,
        "description": f"Session with {session.mentor_name}",
        "order_id": order["id"] if order is not None else None,
        "key_id": settings.RAZORPAY_KEY_ID if order is not None else None,
    }


def on_payment_succeeded(db: Session, raw_body: str, signature: Optional[str] = None) -> SessionModel:
    """
    Gateway success callback.

    ``raw_body`` is the callback body exactly as received. The webhook
    signature covers those bytes, so the session and transaction ids are read
    from the same body only after it verifies.
    """
    gateway.verify_webhook_signature(raw_body, signature)
    try:
        callback = schemas.PaymentCallback.model_validate_json(raw_body)
    except PydanticValidationError as exc:
        raise ValidationError("Malformed payment callback", field="body") from exc
    return lifecycle.record_payment(db, callback.session_id, callback.transaction_id)


def record_client_payment(
    db: Session,
    session_id: int,
    transaction_id: str,
    acting_user_id: int,
    *,
    order_id: Optional[str] = None,
    signature: Optional[str] = None,
) -> SessionModel:
    """Checkout result reported by the student's client."""
    session = lifecycle.get_session(db, session_id, acting_user_id)
    if session.student_id != acting_user_id:
        raise PermissionDeniedError("Only the session's student can record its payment")
    gateway.verify_checkout_signature(order_id, transaction_id, signature)
    return lifecycle.record_payment(db, session_id, transaction_id)
