# guidant/api/session_request.py
"""
Session request endpoints.

Students propose a slot; the requested mentor accepts or rejects it. Accepting
returns the id of the payable session spawned in the same commit.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from guidant import models, schemas
from guidant.database import get_db
from guidant.exceptions import PermissionDeniedError
from guidant.services import booking_query, request_service
from guidant.services.status_projector import project
from guidant.utils.security import get_current_user

router = APIRouter(prefix="/session-requests", tags=["Session Requests"])


def _require_mentor_role(user: models.User) -> None:
    if not user.is_mentor:
        raise PermissionDeniedError("Mentor access only")


# ======================
# CREATE REQUEST (student)
# ======================
@router.post("/", response_model=schemas.RequestView, status_code=status.HTTP_201_CREATED)
def create_session_request(
    payload: schemas.SessionRequestCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    request = request_service.create_request(
        db,
        student_id=current_user.id,
        mentor_id=payload.mentor_id,
        session_date=payload.session_date,
        session_time=payload.session_time,
        session_type=payload.session_type.value,
        notes=payload.notes,
    )
    return booking_query.build_request_view(request)


# ======================
# ACCEPT / REJECT (mentor)
# ======================
@router.put("/{request_id}")
def update_session_request_status(
    request_id: int,
    payload: schemas.SessionRequestStatusUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    request = request_service.update_request_status(
        db, request_id, payload.status.strip().lower(), current_user.id
    )
    session_id = request.session.id if request.session is not None else None
    return {
        "message": f"Request {request.status}",
        "request_id": request.id,
        "status": request.status,
        "display_status": project(request).value,
        "session_id": session_id,
    }


# ======================
# LISTINGS
# ======================
@router.get("/mentor", response_model=List[schemas.RequestView])
def get_mentor_requests(
    status: Optional[str] = Query(None),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_mentor_role(current_user)
    requests = request_service.list_for_mentor(db, current_user.id, status)
    return booking_query.build_request_views(db, requests)


@router.get("/my", response_model=List[schemas.RequestView])
def get_my_requests(
    status: Optional[str] = Query(None),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    requests = request_service.list_for_student(db, current_user.id, status)
    return booking_query.build_request_views(db, requests)


@router.get("/pending-count", response_model=schemas.PendingCountResponse)
def get_pending_count(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_mentor_role(current_user)
    return {
        "mentor_id": current_user.id,
        "pending_count": request_service.count_pending(db, current_user.id),
    }
