# guidant/services/request_service.py
"""
Request ledger rules.

A student asks a mentor for a slot; the mentor accepts or rejects it exactly
once. Acceptance and the session it spawns commit together.
"""

import logging
from datetime import date, time
from typing import List, Optional

from sqlalchemy.orm import Session

from guidant.crud import session_request as request_crud
from guidant.crud import user as user_crud
from guidant.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guidant.models.enums import RequestSessionType, RequestStatus
from guidant.models.session_request import SessionRequest
from guidant.services import lifecycle, notification_service
from guidant.services.ledger import ledger_transaction

logger = logging.getLogger(__name__)

REQUEST_LEDGER = "request ledger"
MENTOR_SETTABLE_STATUSES = (
    RequestStatus.PENDING.value,
    RequestStatus.ACCEPTED.value,
    RequestStatus.REJECTED.value,
)
REQUEST_SESSION_TYPES = tuple(t.value for t in RequestSessionType)


def create_request(
    db: Session,
    *,
    student_id: int,
    mentor_id: int,
    session_date: date,
    session_time: time,
    session_type: str = "video",
    notes: Optional[str] = None,
) -> SessionRequest:
    if mentor_id == student_id:
        raise InvalidOperationError("Cannot request a session with yourself")
    if session_type not in REQUEST_SESSION_TYPES:
        raise ValidationError(
            f"session_type must be one of: {', '.join(REQUEST_SESSION_TYPES)}",
            field="session_type",
        )
    if session_date is None:
        raise ValidationError("session_date is required", field="session_date")
    if session_time is None:
        raise ValidationError("session_time is required", field="session_time")

    with ledger_transaction(db, REQUEST_LEDGER):
        mentor = user_crud.require_mentor(db, mentor_id)
        student = user_crud.require_user(db, student_id)

        request = request_crud.create_request(
            db,
            mentor_id=mentor.id,
            student_id=student.id,
            student_name=student.name,
            session_date=session_date,
            session_time=session_time,
            session_type=session_type,
            notes=notes,
        )
        notification = notification_service.create_notification(
            db,
            recipient_id=mentor.id,
            actor_id=student.id,
            request_id=request.id,
            event_type="request_created",
            message=(
                f"{student.name} requested a {session_type} session on "
                f"{session_date.isoformat()} at {session_time.strftime('%H:%M')}."
            ),
        )

    notification_service.dispatch_email_for_notification(db, notification)
    logger.info("Request %s created (student=%s, mentor=%s)", request.id, student_id, mentor_id)
    return request


def get_request(db: Session, request_id: int) -> SessionRequest:
    request = request_crud.get_request(db, request_id)
    if not request:
        raise NotFoundError("Session request", request_id)
    return request


def update_request_status(
    db: Session,
    request_id: int,
    new_status: str,
    acting_user_id: int,
) -> SessionRequest:
    """
    Mentor decision on a pending request.

    ``pending -> accepted`` also spawns the payable session in the same
    commit. Two racing acceptances are serialized by a conditional update: the
    loser gets ``ConflictError`` and no second session exists.
    """
    if new_status not in MENTOR_SETTABLE_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(MENTOR_SETTABLE_STATUSES)}",
            field="status",
        )

    notification = None
    with ledger_transaction(db, REQUEST_LEDGER):
        request = get_request(db, request_id)
        if request.mentor_id != acting_user_id:
            raise PermissionDeniedError(
                "Only the requested mentor can update this request",
                details={"request_id": request.id},
            )

        if request.status == new_status == RequestStatus.PENDING.value:
            return request
        if request.status == new_status == RequestStatus.ACCEPTED.value:
            raise ConflictError(
                "Request has already been accepted", details={"request_id": request.id}
            )
        if request.status != RequestStatus.PENDING.value:
            raise InvalidOperationError(
                f"Request is already {request.status}",
                details={"request_id": request.id, "status": request.status},
            )
        if new_status == RequestStatus.PENDING.value:
            return request

        if not request_crud.transition_from_pending(db, request.id, new_status):
            raise ConflictError(
                "Request was updated by a concurrent decision",
                details={"request_id": request.id},
            )
        db.expire(request, ["status"])

        if new_status == RequestStatus.ACCEPTED.value:
            session = lifecycle.spawn_session_from_accepted_request(db, request)
            notification = notification_service.create_notification(
                db,
                recipient_id=request.student_id,
                actor_id=acting_user_id,
                request_id=request.id,
                session_id=session.id,
                event_type="request_accepted",
                message=(
                    f"Your session request for {request.session_date.isoformat()} was "
                    f"accepted. Complete payment of {session.price:g} to confirm it."
                ),
            )
        else:
            notification = notification_service.create_notification(
                db,
                recipient_id=request.student_id,
                actor_id=acting_user_id,
                request_id=request.id,
                event_type="request_rejected",
                message=f"Your session request for {request.session_date.isoformat()} was declined.",
            )

    notification_service.dispatch_email_for_notification(db, notification)
    logger.info("Request %s moved to %s by mentor %s", request_id, new_status, acting_user_id)
    return request


def list_for_mentor(db: Session, mentor_id: int, status: Optional[str] = None) -> List[SessionRequest]:
    if status is not None and status not in {s.value for s in RequestStatus}:
        raise ValidationError("Unknown request status filter", field="status")
    return request_crud.list_for_mentor(db, mentor_id, status)


def list_for_student(db: Session, student_id: int, status: Optional[str] = None) -> List[SessionRequest]:
    if status is not None and status not in {s.value for s in RequestStatus}:
        raise ValidationError("Unknown request status filter", field="status")
    return request_crud.list_for_student(db, student_id, status)


def count_pending(db: Session, mentor_id: int) -> int:
    return request_crud.count_pending(db, mentor_id)
