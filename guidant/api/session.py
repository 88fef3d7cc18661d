# guidant/api/session.py
"""
Session Management API

Direct booking, reschedule, cancel, rating and call-room lookup. Every
response carries the projected ``display_status`` for the caller to render.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from guidant import models, schemas
from guidant.database import get_db
from guidant.models.session import Session as SessionModel
from guidant.schemas.session import SessionBase
from guidant.services import lifecycle, payment_service
from guidant.services.status_projector import project
from guidant.utils.security import get_current_user

router = APIRouter(prefix="/sessions", tags=["sessions"])


def to_session_response(session: SessionModel) -> schemas.SessionResponse:
    base = SessionBase.model_validate(session)
    return schemas.SessionResponse(
        **base.model_dump(),
        display_status=project(session).value,
        rescheduled_by=session.rescheduled_by,
    )


# ======================
# DIRECT BOOKING
# ======================
@router.post("/", response_model=schemas.SessionResponse, status_code=status.HTTP_201_CREATED)
def book_session(
    payload: schemas.DirectSessionCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book a mentor immediately; a payment id from checkout confirms it."""
    session = lifecycle.create_direct_session(
        db,
        student_id=current_user.id,
        mentor_id=payload.mentor_id,
        session_date=payload.session_date,
        session_time=payload.session_time,
        session_type=payload.session_type,
        notes=payload.notes,
        payment_id=payload.payment_id,
        payment_order_id=payload.payment_order_id,
        payment_signature=payload.payment_signature,
    )
    return to_session_response(session)


@router.get("/{session_id}", response_model=schemas.SessionResponse)
def get_session(
    session_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return to_session_response(lifecycle.get_session(db, session_id, current_user.id))


# ======================
# RESCHEDULE
# ======================
@router.put("/{session_id}/reschedule", response_model=schemas.SessionResponse)
def reschedule_session(
    session_id: int,
    payload: schemas.SessionReschedule,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    session = lifecycle.reschedule(
        db, session_id, payload.session_date, payload.session_time, current_user.id
    )
    return to_session_response(session)


@router.patch("/{session_id}/reschedule/accept", response_model=schemas.SessionResponse)
def accept_reschedule(
    session_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return to_session_response(lifecycle.accept_reschedule(db, session_id, current_user.id))


# ======================
# CANCEL
# ======================
@router.patch("/{session_id}/cancel", response_model=schemas.SessionResponse)
def cancel_session(
    session_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return to_session_response(lifecycle.cancel_session(db, session_id, current_user.id))


# ======================
# COMPLETE & RATE
# ======================
@router.put("/{session_id}/rating", response_model=schemas.SessionResponse)
def rate_session(
    session_id: int,
    payload: schemas.SessionRating,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    session = lifecycle.complete_and_rate(
        db, session_id, payload.rating, payload.feedback, current_user.id
    )
    return to_session_response(session)


# ======================
# CALL ROOM
# ======================
@router.get("/{session_id}/join", response_model=schemas.JoinableSessionInfo)
def join_session(
    session_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return lifecycle.get_joinable_session_info(db, session_id, current_user.id)


# ======================
# CLIENT-REPORTED PAYMENT
# ======================
@router.put("/{session_id}/payment", response_model=schemas.SessionResponse)
def update_session_payment(
    session_id: int,
    payload: schemas.SessionPaymentUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    session = payment_service.record_client_payment(
        db,
        session_id,
        payload.payment_id,
        current_user.id,
        order_id=payload.order_id,
        signature=payload.signature,
    )
    return to_session_response(session)
