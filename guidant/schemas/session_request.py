from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from guidant.models.enums import RequestSessionType


# ======================
# SESSION REQUEST INPUT
# ======================

class SessionRequestCreate(BaseModel):
    """Student's proposal for a session with a mentor."""
    mentor_id: int
    session_date: date
    session_time: time
    session_type: RequestSessionType = RequestSessionType.VIDEO
    notes: Optional[str] = Field(None, max_length=1000)


class SessionRequestStatusUpdate(BaseModel):
    # Checked by the request ledger so the error names the accepted values.
    status: str


# ======================
# SESSION REQUEST OUTPUT
# ======================

class SessionRequestResponse(BaseModel):
    id: int
    mentor_id: int
    student_id: int
    student_name: str
    session_date: date
    session_time: time
    session_type: str
    notes: Optional[str] = None
    status: str
    payment_status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PendingCountResponse(BaseModel):
    mentor_id: int
    pending_count: int
