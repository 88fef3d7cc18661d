"""
Merged booking views.

A viewer's bookings come from two ledgers. They are exposed as a tagged union
discriminated on ``kind`` so clients never guess a record's shape.
"""

from datetime import date, datetime, time
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _BookingViewBase(BaseModel):
    id: int
    mentor_id: int
    student_id: int
    student_name: str
    session_date: date
    session_time: time
    session_type: str
    notes: Optional[str] = None
    status: str
    display_status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RequestView(_BookingViewBase):
    kind: Literal["request"] = "request"
    payment_status: str
    session_id: Optional[int] = None


class SessionView(_BookingViewBase):
    kind: Literal["session"] = "session"
    request_id: Optional[int] = None
    mentor_name: str
    price: float
    payment_id: Optional[str] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None


BookingView = Annotated[Union[RequestView, SessionView], Field(discriminator="kind")]


class DashboardSummary(BaseModel):
    mentor_id: int
    pending_count: int
    latest_pending: List[RequestView]
