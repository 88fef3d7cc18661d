from typing import List, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from guidant import models, schemas
from guidant.database import get_db
from guidant.exceptions import PermissionDeniedError
from guidant.services import booking_query
from guidant.utils.security import get_current_user

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("/my", response_model=List[schemas.BookingView])
def get_my_bookings(
    role: Literal["student", "mentor"] = Query("student"),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Requests and sessions merged, each tagged with ``kind``."""
    return booking_query.list_bookings_for_viewer(db, current_user.id, role)


@router.get("/dashboard", response_model=schemas.DashboardSummary)
def get_mentor_dashboard(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not current_user.is_mentor:
        raise PermissionDeniedError("Mentor access only")
    return booking_query.get_dashboard_summary(db, current_user.id)
