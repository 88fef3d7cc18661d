# guidant/crud/session_request.py
"""
Request ledger persistence.

Plain queries over ``session_requests``. Business rules live in
``guidant.services.request_service``.
"""

from datetime import date, time
from typing import List, Optional

from sqlalchemy.orm import Session

from guidant.models.enums import RequestStatus, RequestPaymentStatus
from guidant.models.session_request import SessionRequest


def create_request(
    db: Session,
    *,
    mentor_id: int,
    student_id: int,
    student_name: str,
    session_date: date,
    session_time: time,
    session_type: str,
    notes: Optional[str] = None,
) -> SessionRequest:
    request = SessionRequest(
        mentor_id=mentor_id,
        student_id=student_id,
        student_name=student_name,
        session_date=session_date,
        session_time=session_time,
        session_type=session_type,
        notes=notes,
        status=RequestStatus.PENDING.value,
        payment_status=RequestPaymentStatus.PENDING.value,
    )
    db.add(request)
    db.flush()
    return request


def get_request(db: Session, request_id: int) -> Optional[SessionRequest]:
    return db.query(SessionRequest).filter(SessionRequest.id == request_id).first()


def transition_from_pending(db: Session, request_id: int, new_status: str) -> bool:
    """
    Conditional update guarded on ``status == pending``.

    Returns False when another transaction already moved the request, which is
    how concurrent acceptances are serialized per request id.
    """
    updated = db.query(SessionRequest).filter(
        SessionRequest.id == request_id,
        SessionRequest.status == RequestStatus.PENDING.value,
    ).update({SessionRequest.status: new_status}, synchronize_session=False)
    return updated == 1


def list_for_mentor(db: Session, mentor_id: int, status: Optional[str] = None) -> List[SessionRequest]:
    query = db.query(SessionRequest).filter(SessionRequest.mentor_id == mentor_id)
    if status:
        query = query.filter(SessionRequest.status == status)
    return query.order_by(SessionRequest.created_at.desc(), SessionRequest.id.desc()).all()


def list_for_student(db: Session, student_id: int, status: Optional[str] = None) -> List[SessionRequest]:
    query = db.query(SessionRequest).filter(SessionRequest.student_id == student_id)
    if status:
        query = query.filter(SessionRequest.status == status)
    return query.order_by(SessionRequest.created_at.desc(), SessionRequest.id.desc()).all()


def count_pending(db: Session, mentor_id: int) -> int:
    return db.query(SessionRequest).filter(
        SessionRequest.mentor_id == mentor_id,
        SessionRequest.status == RequestStatus.PENDING.value,
    ).count()


def latest_pending(db: Session, mentor_id: int, limit: int = 5) -> List[SessionRequest]:
    return (
        db.query(SessionRequest)
        .filter(
            SessionRequest.mentor_id == mentor_id,
            SessionRequest.status == RequestStatus.PENDING.value,
        )
        .order_by(SessionRequest.created_at.desc(), SessionRequest.id.desc())
        .limit(limit)
        .all()
    )
