# guidant/models/enums.py
import enum


class UserRole(str, enum.Enum):
    STUDENT = "student"
    MENTOR = "mentor"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"


class RequestPaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class RequestSessionType(str, enum.Enum):
    VIDEO = "video"
    CHAT = "chat"
    IN_PERSON = "in-person"


class SessionStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    # Legacy value; only counts as paid when a real payment id is held.
    ACCEPTED = "accepted"


class SessionType(str, enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"
    CHAT = "chat"
    # Carried over verbatim from an accepted in-person request.
    IN_PERSON = "in-person"


# Payment id held by a session until the gateway reports success.
PAYMENT_PENDING = "pending"

TERMINAL_SESSION_STATUSES = frozenset({
    SessionStatus.COMPLETED.value,
    SessionStatus.CANCELLED.value,
})

TERMINAL_REQUEST_STATUSES = frozenset({
    RequestStatus.ACCEPTED.value,
    RequestStatus.REJECTED.value,
    RequestStatus.COMPLETED.value,
})

PAYABLE_STATUSES = frozenset({
    SessionStatus.CONFIRMED.value,
    SessionStatus.ACCEPTED.value,
})
