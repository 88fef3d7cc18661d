from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from datetime import date, datetime, time

# ======================
# SESSION INPUT MODELS
# ======================

class DirectSessionCreate(BaseModel):
    """Immediate booking without a prior request."""
    mentor_id: int
    session_date: date
    session_time: time
    session_type: Literal["video", "audio", "chat"] = "video"
    notes: Optional[str] = Field(None, max_length=1000)
    # Present when checkout already completed on the client.
    payment_id: Optional[str] = None
    payment_order_id: Optional[str] = None
    payment_signature: Optional[str] = None


class SessionReschedule(BaseModel):
    session_date: date
    session_time: time


class SessionRating(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")
    feedback: Optional[str] = Field(None, max_length=1000)


class SessionPaymentUpdate(BaseModel):
    """Checkout result as returned to the client by the gateway."""
    payment_id: str = Field(..., min_length=1)
    order_id: Optional[str] = None
    signature: Optional[str] = None


# ======================
# SESSION RESPONSE MODELS
# ======================

class SessionBase(BaseModel):
    id: int
    request_id: Optional[int] = None
    mentor_id: int
    mentor_name: str
    student_id: int
    student_name: str
    session_date: date
    session_time: time
    session_type: str
    notes: Optional[str] = None
    price: float
    payment_id: Optional[str] = None
    status: str
    rating: Optional[int] = None
    feedback: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SessionResponse(SessionBase):
    """Session annotated with the status a viewer should see."""
    display_status: str
    rescheduled_by: Optional[int] = None


class JoinableSessionInfo(BaseModel):
    session_id: int
    room_identifier: str
    participant_ids: List[int]
