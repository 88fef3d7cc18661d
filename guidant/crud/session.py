# guidant/crud/session.py
"""
Session ledger persistence.

Sessions are never deleted; every mutation is a field update on an existing row.
"""

from datetime import date, time
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from guidant.models.enums import PAYMENT_PENDING
from guidant.models.session import Session as SessionModel


def create_session(
    db: Session,
    *,
    mentor_id: int,
    mentor_name: str,
    student_id: int,
    student_name: str,
    session_date: date,
    session_time: time,
    session_type: str,
    price: float,
    status: str,
    notes: Optional[str] = None,
    payment_id: str = PAYMENT_PENDING,
    request_id: Optional[int] = None,
) -> SessionModel:
    session = SessionModel(
        request_id=request_id,
        mentor_id=mentor_id,
        mentor_name=mentor_name,
        student_id=student_id,
        student_name=student_name,
        session_date=session_date,
        session_time=session_time,
        session_type=session_type,
        notes=notes,
        price=price,
        payment_id=payment_id,
        status=status,
    )
    db.add(session)
    db.flush()
    return session


def get_session(db: Session, session_id: int) -> Optional[SessionModel]:
    return db.query(SessionModel).filter(SessionModel.id == session_id).first()


def get_session_for_request(db: Session, request_id: int) -> Optional[SessionModel]:
    return db.query(SessionModel).filter(SessionModel.request_id == request_id).first()


def get_sessions_for_requests(db: Session, request_ids: Iterable[int]) -> List[SessionModel]:
    ids = list(request_ids)
    if not ids:
        return []
    return db.query(SessionModel).filter(SessionModel.request_id.in_(ids)).all()


def complete_if_payable(
    db: Session,
    session_id: int,
    payable_statuses: Iterable[str],
    *,
    status: str,
    rating: int,
    feedback: Optional[str],
) -> bool:
    """
    Conditional completion guarded on the prior status.

    Only one caller can move a given session out of a payable status, so the
    mentor's completion counter is incremented at most once.
    """
    updated = db.query(SessionModel).filter(
        SessionModel.id == session_id,
        SessionModel.status.in_(list(payable_statuses)),
    ).update(
        {
            SessionModel.status: status,
            SessionModel.rating: rating,
            SessionModel.feedback: feedback,
        },
        synchronize_session=False,
    )
    return updated == 1


def list_for_student(db: Session, student_id: int) -> List[SessionModel]:
    return (
        db.query(SessionModel)
        .filter(SessionModel.student_id == student_id)
        .order_by(SessionModel.session_date.desc(), SessionModel.created_at.desc())
        .all()
    )


def list_for_mentor(db: Session, mentor_id: int) -> List[SessionModel]:
    return (
        db.query(SessionModel)
        .filter(SessionModel.mentor_id == mentor_id)
        .order_by(SessionModel.session_date.desc(), SessionModel.created_at.desc())
        .all()
    )
