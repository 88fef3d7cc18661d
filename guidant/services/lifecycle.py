# guidant/services/lifecycle.py
"""
Session lifecycle engine.

Owns every transition of a ``Session`` after it exists, and is the only writer
allowed to create a session from an accepted request or to bump a mentor's
``sessions_completed`` counter.

    pending --payment--> confirmed --complete--> completed
       |                     |
       +--reschedule---------+--reschedule--> rescheduled --accept/payment--> pending/confirmed
    pending/confirmed/rescheduled --cancel--> cancelled

``completed`` and ``cancelled`` are terminal.
"""

import logging
from datetime import date, time
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from guidant.config import settings
from guidant.crud import session as session_crud
from guidant.crud import user as user_crud
from guidant.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guidant.models.enums import (
    PAYABLE_STATUSES,
    PAYMENT_PENDING,
    TERMINAL_SESSION_STATUSES,
    SessionStatus,
    SessionType,
)
from guidant.models.session import Session as SessionModel
from guidant.models.session_request import SessionRequest
from guidant.services import gateway, notification_service
from guidant.services.ledger import ledger_transaction
from guidant.services.status_projector import (
    DisplayStatus,
    has_real_payment,
    is_paid_confirmed,
    project,
)

logger = logging.getLogger(__name__)

SESSION_LEDGER = "session ledger"
DIRECT_BOOKING_TYPES = (SessionType.VIDEO.value, SessionType.AUDIO.value, SessionType.CHAT.value)
MAX_FEEDBACK_LENGTH = 1000


# ======================
# HELPERS
# ======================

def _require_session(db: Session, session_id: int) -> SessionModel:
    session = session_crud.get_session(db, session_id)
    if not session:
        raise NotFoundError("Session", session_id)
    return session


def _require_participant(session: SessionModel, acting_user_id: int) -> None:
    if acting_user_id not in (session.student_id, session.mentor_id):
        raise PermissionDeniedError(
            "Only the session's student or mentor can act on it",
            details={"session_id": session.id},
        )


def _reject_terminal(session: SessionModel, action: str) -> None:
    if session.status in TERMINAL_SESSION_STATUSES:
        raise InvalidOperationError(
            f"Cannot {action} a {session.status} session",
            details={"session_id": session.id, "status": session.status},
        )


def _counterparty_id(session: SessionModel, acting_user_id: int) -> int:
    return session.mentor_id if acting_user_id == session.student_id else session.student_id


def _require_positive_price(price: Optional[float], **details: Any) -> None:
    if price is None or price <= 0:
        raise InvalidOperationError(
            "Session price must be greater than zero; the mentor has not set a price",
            details=details,
        )


def _dispatch(db: Session, notification) -> None:
    notification_service.dispatch_email_for_notification(db, notification)


# ======================
# SESSION CREATION
# ======================

def spawn_session_from_accepted_request(db: Session, request: SessionRequest) -> SessionModel:
    """
    Create the payable session for an accepted request.

    Idempotent per request id: a second call returns the session already
    spawned. Flushes but does not commit; the acceptance that triggered the
    spawn owns the transaction so both rows land together or not at all.
    """
    existing = session_crud.get_session_for_request(db, request.id)
    if existing:
        logger.info("Session %s already spawned for request %s", existing.id, request.id)
        return existing

    mentor = user_crud.require_mentor(db, request.mentor_id)
    _require_positive_price(mentor.price_per_session, mentor_id=mentor.id, request_id=request.id)

    try:
        session = session_crud.create_session(
            db,
            request_id=request.id,
            mentor_id=mentor.id,
            mentor_name=mentor.name,
            student_id=request.student_id,
            student_name=request.student_name,
            session_date=request.session_date,
            session_time=request.session_time,
            session_type=request.session_type,
            notes=request.notes,
            price=mentor.price_per_session,
            payment_id=PAYMENT_PENDING,
            status=SessionStatus.PENDING.value,
        )
    except IntegrityError as exc:
        raise ConflictError(
            "A session for this request was created concurrently",
            details={"request_id": request.id},
        ) from exc

    logger.info(
        "Spawned session %s from request %s (price=%s)", session.id, request.id, session.price
    )
    return session


def create_direct_session(
    db: Session,
    *,
    student_id: int,
    mentor_id: int,
    session_date: date,
    session_time: time,
    session_type: str = "video",
    notes: Optional[str] = None,
    payment_id: Optional[str] = None,
    payment_order_id: Optional[str] = None,
    payment_signature: Optional[str] = None,
) -> SessionModel:
    """
    Immediate booking without a request.

    An unknown or non-mentor ``mentor_id`` is rejected; no placeholder id is
    ever substituted. A ``payment_id`` from a completed checkout must carry the
    gateway's order id and signature; once verified the session starts confirmed.
    """
    if mentor_id == student_id:
        raise InvalidOperationError("Cannot book a session with yourself")
    if session_type not in DIRECT_BOOKING_TYPES:
        raise ValidationError(
            f"session_type must be one of: {', '.join(DIRECT_BOOKING_TYPES)}",
            field="session_type",
        )
    payment_id = (payment_id or "").strip() or None
    if payment_id == PAYMENT_PENDING:
        payment_id = None
    if payment_id:
        gateway.verify_checkout_signature(payment_order_id, payment_id, payment_signature)

    with ledger_transaction(db, SESSION_LEDGER):
        student = user_crud.require_user(db, student_id)
        mentor = user_crud.require_mentor(db, mentor_id)
        _require_positive_price(mentor.price_per_session, mentor_id=mentor.id)

        session = session_crud.create_session(
            db,
            mentor_id=mentor.id,
            mentor_name=mentor.name,
            student_id=student.id,
            student_name=student.name,
            session_date=session_date,
            session_time=session_time,
            session_type=session_type,
            notes=notes,
            price=mentor.price_per_session,
            payment_id=payment_id or PAYMENT_PENDING,
            status=SessionStatus.CONFIRMED.value if payment_id else SessionStatus.PENDING.value,
        )
        notification = notification_service.create_notification(
            db,
            recipient_id=mentor.id,
            actor_id=student.id,
            session_id=session.id,
            event_type="session_booked",
            message=f"{student.name} booked a session with you on {session_date.isoformat()}.",
        )

    _dispatch(db, notification)
    logger.info("Direct session %s booked (status=%s)", session.id, session.status)
    return session


# ======================
# PAYMENT
# ======================

def record_payment(db: Session, session_id: int, transaction_id: str) -> SessionModel:
    """
    Attach a gateway transaction id and confirm the session.

    Replaying the same transaction id is a no-op. A different id on an already
    paid session overwrites the stored one; charging is the gateway's job.
    """
    transaction_id = (transaction_id or "").strip()
    if not transaction_id or transaction_id == PAYMENT_PENDING:
        raise ValidationError("transaction_id is required", field="transaction_id")

    notification = None
    with ledger_transaction(db, SESSION_LEDGER):
        session = _require_session(db, session_id)

        if session.payment_id == transaction_id:
            logger.info("Duplicate payment callback for session %s ignored", session.id)
            return session

        _reject_terminal(session, "record payment for")
        _require_positive_price(session.price, session_id=session.id)

        if has_real_payment(session.payment_id):
            logger.warning(
                "Session %s payment id overwritten (%s -> %s)",
                session.id,
                session.payment_id,
                transaction_id,
            )

        session.payment_id = transaction_id
        session.status = SessionStatus.CONFIRMED.value
        session.rescheduled_by = None
        notification = notification_service.create_notification(
            db,
            recipient_id=session.mentor_id,
            actor_id=session.student_id,
            session_id=session.id,
            event_type="payment_confirmed",
            message=f"{session.student_name} paid for the session. It is now confirmed.",
        )

    _dispatch(db, notification)
    logger.info("Payment recorded for session %s", session_id)
    return session


# ======================
# RESCHEDULE
# ======================

def reschedule(
    db: Session,
    session_id: int,
    new_date: date,
    new_time: time,
    acting_user_id: int,
) -> SessionModel:
    if new_date is None:
        raise ValidationError("session_date is required", field="session_date")
    if new_time is None:
        raise ValidationError("session_time is required", field="session_time")

    with ledger_transaction(db, SESSION_LEDGER):
        session = _require_session(db, session_id)
        _require_participant(session, acting_user_id)
        _reject_terminal(session, "reschedule")

        session.session_date = new_date
        session.session_time = new_time
        session.status = SessionStatus.RESCHEDULED.value
        session.rescheduled_by = acting_user_id
        notification = notification_service.create_notification(
            db,
            recipient_id=_counterparty_id(session, acting_user_id),
            actor_id=acting_user_id,
            session_id=session.id,
            event_type="session_rescheduled",
            message=(
                f"Your session was moved to {new_date.isoformat()} at "
                f"{new_time.strftime('%H:%M')}. Please confirm the new time."
            ),
        )

    _dispatch(db, notification)
    logger.info("Session %s rescheduled by user %s", session_id, acting_user_id)
    return session


def accept_reschedule(db: Session, session_id: int, acting_user_id: int) -> SessionModel:
    """Counterparty agrees to the new time; paid sessions go back to confirmed."""
    with ledger_transaction(db, SESSION_LEDGER):
        session = _require_session(db, session_id)
        _require_participant(session, acting_user_id)
        if session.status != SessionStatus.RESCHEDULED.value:
            raise InvalidOperationError(
                "Only rescheduled sessions can be reconfirmed",
                details={"session_id": session.id, "status": session.status},
            )
        if session.rescheduled_by == acting_user_id:
            raise PermissionDeniedError("The other party must accept your reschedule")

        session.status = (
            SessionStatus.CONFIRMED.value
            if has_real_payment(session.payment_id)
            else SessionStatus.PENDING.value
        )
        session.rescheduled_by = None
        notification = notification_service.create_notification(
            db,
            recipient_id=_counterparty_id(session, acting_user_id),
            actor_id=acting_user_id,
            session_id=session.id,
            event_type="reschedule_accepted",
            message="The new session time was accepted.",
        )

    _dispatch(db, notification)
    return session


# ======================
# CANCEL
# ======================

def cancel_session(db: Session, session_id: int, acting_user_id: int) -> SessionModel:
    with ledger_transaction(db, SESSION_LEDGER):
        session = _require_session(db, session_id)
        _require_participant(session, acting_user_id)
        _reject_terminal(session, "cancel")

        session.status = SessionStatus.CANCELLED.value
        notification = notification_service.create_notification(
            db,
            recipient_id=_counterparty_id(session, acting_user_id),
            actor_id=acting_user_id,
            session_id=session.id,
            event_type="session_cancelled",
            message=f"Your session on {session.session_date.isoformat()} was cancelled.",
        )

    _dispatch(db, notification)
    logger.info("Session %s cancelled by user %s", session_id, acting_user_id)
    return session


# ======================
# COMPLETE & RATE
# ======================

def complete_and_rate(
    db: Session,
    session_id: int,
    rating: int,
    feedback: Optional[str],
    acting_user_id: int,
) -> SessionModel:
    """
    Student closes a paid session with a rating.

    The status change is a conditional update on a payable prior status, so
    the mentor's counter moves exactly once even under repeated calls.
    """
    if isinstance(rating, bool) or not isinstance(rating, int) or not (1 <= rating <= 5):
        raise ValidationError("Rating must be between 1 and 5", field="rating")
    feedback = (feedback or "").strip() or None
    if feedback and len(feedback) > MAX_FEEDBACK_LENGTH:
        raise ValidationError(
            f"Feedback must be {MAX_FEEDBACK_LENGTH} characters or less", field="feedback"
        )

    with ledger_transaction(db, SESSION_LEDGER):
        session = _require_session(db, session_id)
        if session.student_id != acting_user_id:
            raise PermissionDeniedError("Only the session's student can rate it")
        if session.status == SessionStatus.COMPLETED.value:
            raise InvalidOperationError(
                "Session has already been completed and rated",
                details={"session_id": session.id},
            )
        _reject_terminal(session, "rate")
        if not is_paid_confirmed(session.status, session.payment_id):
            raise InvalidOperationError(
                "Only paid, confirmed sessions can be rated",
                details={"session_id": session.id, "status": session.status},
            )

        completed = session_crud.complete_if_payable(
            db,
            session.id,
            PAYABLE_STATUSES,
            status=SessionStatus.COMPLETED.value,
            rating=rating,
            feedback=feedback,
        )
        if not completed:
            raise InvalidOperationError(
                "Session has already been completed and rated",
                details={"session_id": session.id},
            )
        user_crud.increment_sessions_completed(db, session.mentor_id)
        db.expire(session)

        notification = notification_service.create_notification(
            db,
            recipient_id=session.mentor_id,
            actor_id=acting_user_id,
            session_id=session.id,
            event_type="session_completed",
            message=f"{session.student_name} completed the session and rated it {rating}/5.",
        )

    _dispatch(db, notification)
    logger.info("Session %s completed with rating %s", session_id, rating)
    return session


# ======================
# READS
# ======================

def get_session(db: Session, session_id: int, acting_user_id: int) -> SessionModel:
    session = _require_session(db, session_id)
    _require_participant(session, acting_user_id)
    return session


def get_joinable_session_info(db: Session, session_id: int, acting_user_id: int) -> Dict[str, Any]:
    """Room details for the external call transport, only once the session is Confirmed."""
    session = get_session(db, session_id, acting_user_id)
    if project(session) is not DisplayStatus.CONFIRMED:
        raise InvalidOperationError(
            "Session is not confirmed yet",
            details={"session_id": session.id, "display_status": project(session).value},
        )
    return {
        "session_id": session.id,
        "room_identifier": f"{settings.CALL_ROOM_PREFIX}-{session.id}",
        "participant_ids": [session.student_id, session.mentor_id],
    }
