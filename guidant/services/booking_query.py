# guidant/services/booking_query.py
"""
Read-only views over both ledgers.

Every record returned here carries a freshly projected ``display_status``.
"""

from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from guidant import schemas
from guidant.crud import session as session_crud
from guidant.crud import session_request as request_crud
from guidant.crud import user as user_crud
from guidant.exceptions import ValidationError
from guidant.models.enums import TERMINAL_SESSION_STATUSES, RequestPaymentStatus, SessionStatus
from guidant.models.session import Session as SessionModel
from guidant.models.session_request import SessionRequest
from guidant.services.status_projector import has_real_payment, project, project_status

VIEWER_ROLES = ("student", "mentor")

# Once the spawned session has moved on, its request shows what the session shows
SESSION_DRIVEN_STATUSES = TERMINAL_SESSION_STATUSES | {SessionStatus.RESCHEDULED.value}


def build_request_view(request: SessionRequest, session: Optional[SessionModel] = None) -> schemas.RequestView:
    # Payment lives on the spawned session; the request row is never touched again
    payment_id = session.payment_id if session is not None else None
    paid = has_real_payment(payment_id)
    if session is not None and session.status in SESSION_DRIVEN_STATUSES:
        display = project(session)
    else:
        display = project_status(request.status, payment_id)
    return schemas.RequestView(
        id=request.id,
        mentor_id=request.mentor_id,
        student_id=request.student_id,
        student_name=request.student_name,
        session_date=request.session_date,
        session_time=request.session_time,
        session_type=request.session_type,
        notes=request.notes,
        status=request.status,
        display_status=display.value,
        created_at=request.created_at,
        payment_status=(
            RequestPaymentStatus.COMPLETED.value if paid else request.payment_status
        ),
        session_id=session.id if session is not None else None,
    )


def build_session_view(session: SessionModel) -> schemas.SessionView:
    return schemas.SessionView(
        id=session.id,
        request_id=session.request_id,
        mentor_id=session.mentor_id,
        mentor_name=session.mentor_name,
        student_id=session.student_id,
        student_name=session.student_name,
        session_date=session.session_date,
        session_time=session.session_time,
        session_type=session.session_type,
        notes=session.notes,
        status=session.status,
        display_status=project(session).value,
        created_at=session.created_at,
        price=session.price,
        payment_id=session.payment_id,
        rating=session.rating,
        feedback=session.feedback,
    )


def build_request_views(db: Session, requests: List[SessionRequest]) -> List[schemas.RequestView]:
    spawned = {
        s.request_id: s
        for s in session_crud.get_sessions_for_requests(db, [r.id for r in requests])
    }
    return [build_request_view(r, spawned.get(r.id)) for r in requests]


def _sort_key(view: Union[schemas.RequestView, schemas.SessionView]):
    return (view.session_date, view.created_at or datetime.min, view.kind, view.id)


def list_bookings_for_viewer(
    db: Session,
    viewer_id: int,
    role: str,
) -> List[Union[schemas.RequestView, schemas.SessionView]]:
    """
    Requests and sessions in which the viewer plays ``role``, newest slot first.

    Accepted requests stay in the list beside the session they spawned so the
    student sees the acceptance and the payment step as separate entries.
    """
    if role not in VIEWER_ROLES:
        raise ValidationError("role must be 'student' or 'mentor'", field="role")

    if role == "mentor":
        requests = request_crud.list_for_mentor(db, viewer_id)
        sessions = session_crud.list_for_mentor(db, viewer_id)
    else:
        requests = request_crud.list_for_student(db, viewer_id)
        sessions = session_crud.list_for_student(db, viewer_id)

    views = build_request_views(db, requests) + [build_session_view(s) for s in sessions]
    return sorted(views, key=_sort_key, reverse=True)


def get_dashboard_summary(db: Session, mentor_id: int, limit: int = 5) -> schemas.DashboardSummary:
    mentor = user_crud.require_mentor(db, mentor_id)
    return schemas.DashboardSummary(
        mentor_id=mentor.id,
        pending_count=request_crud.count_pending(db, mentor.id),
        latest_pending=build_request_views(db, request_crud.latest_pending(db, mentor.id, limit)),
    )
