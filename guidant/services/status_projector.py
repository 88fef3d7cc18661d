# guidant/services/status_projector.py
"""
Display status projection.

Computes the single status string a viewer sees for a request or session from
the persisted ``status`` and, for sessions, the held payment id. Nothing here
is stored; callers project on every read so the display can never drift from
the payment state.

Precedence (first match wins):
    1. completed / cancelled / rejected  -> Completed / Cancelled / Rejected
    2. pending                           -> Pending Approval
    3. rescheduled                       -> Rescheduled
    4. accepted without a real payment   -> Payment Required
    5. accepted/confirmed with payment   -> Confirmed
    6. anything else                     -> Unknown Status (logged)
"""

import enum
import logging
from typing import Any, Optional

from guidant.models.enums import PAYMENT_PENDING, PAYABLE_STATUSES

logger = logging.getLogger(__name__)


class DisplayStatus(str, enum.Enum):
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    REJECTED = "Rejected"
    PENDING_APPROVAL = "Pending Approval"
    RESCHEDULED = "Rescheduled"
    PAYMENT_REQUIRED = "Payment Required"
    CONFIRMED = "Confirmed"
    UNKNOWN = "Unknown Status"


_TERMINAL_DISPLAY = {
    "completed": DisplayStatus.COMPLETED,
    "cancelled": DisplayStatus.CANCELLED,
    "rejected": DisplayStatus.REJECTED,
}


def has_real_payment(payment_id: Optional[str]) -> bool:
    """True when a gateway transaction id (not the pending sentinel) is held."""
    return bool(payment_id) and payment_id != PAYMENT_PENDING


def is_paid_confirmed(status: Optional[str], payment_id: Optional[str]) -> bool:
    return status in PAYABLE_STATUSES and has_real_payment(payment_id)


def project_status(status: Optional[str], payment_id: Optional[str] = None) -> DisplayStatus:
    if status in _TERMINAL_DISPLAY:
        return _TERMINAL_DISPLAY[status]
    if status == "pending":
        return DisplayStatus.PENDING_APPROVAL
    if status == "rescheduled":
        return DisplayStatus.RESCHEDULED
    if status == "accepted" and not has_real_payment(payment_id):
        return DisplayStatus.PAYMENT_REQUIRED
    if is_paid_confirmed(status, payment_id):
        return DisplayStatus.CONFIRMED
    return DisplayStatus.UNKNOWN


def project(record: Any) -> DisplayStatus:
    """
    Project any ledger record. Never raises.

    Records without a ``payment_id`` attribute (session requests) are projected
    from their status alone.
    """
    try:
        status = getattr(record, "status", None)
        payment_id = getattr(record, "payment_id", None)
        display = project_status(status, payment_id)
    except Exception:
        logger.exception("Status projection failed for %r", record)
        return DisplayStatus.UNKNOWN

    if display is DisplayStatus.UNKNOWN:
        logger.warning(
            "Inconsistent booking record (kind=%s, id=%s, status=%r, payment_id=%r)",
            type(record).__name__,
            getattr(record, "id", None),
            status,
            payment_id,
        )
    return display
