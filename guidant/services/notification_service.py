# guidant/services/notification_service.py
"""
In-app inbox and email fan-out for lifecycle events.

Notifications are staged inside the transition's own transaction (see
``create_notification``) and only mailed after that transaction commits.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

from sqlalchemy.orm import Query, Session

from guidant.crud import user as user_crud
from guidant.exceptions import NotFoundError
from guidant.models.notification import Notification
from guidant.models.user import User
from guidant.utils.email import is_email_enabled, send_email

logger = logging.getLogger(__name__)

EVENT_SUBJECTS = {
    "request_created": "New session request",
    "request_accepted": "Your session request was accepted",
    "request_rejected": "Session request update",
    "session_booked": "New session booked",
    "payment_confirmed": "Your session is confirmed",
    "session_rescheduled": "Session rescheduled",
    "reschedule_accepted": "Reschedule accepted",
    "session_cancelled": "Session cancelled",
    "session_completed": "Session completed and rated",
}


def create_notification(
    db: Session,
    *,
    recipient_id: int,
    actor_id: Optional[int],
    event_type: str,
    message: str,
    session_id: Optional[int] = None,
    request_id: Optional[int] = None,
) -> Notification:
    """Stage an in-app notification in the caller's transaction."""
    notification = Notification(
        recipient_id=recipient_id,
        actor_id=actor_id,
        request_id=request_id,
        session_id=session_id,
        event_type=event_type,
        message=message,
    )
    db.add(notification)
    db.flush()
    return notification


# ======================
# Inbox
# ======================

def _inbox(db: Session, user_id: int, unread_only: bool = False) -> Query:
    query = db.query(Notification).filter(Notification.recipient_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query


def list_inbox(db: Session, user_id: int, *, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    return (
        _inbox(db, user_id, unread_only)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def unread_count(db: Session, user_id: int) -> int:
    return _inbox(db, user_id, unread_only=True).count()


def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
    # Someone else's notification is reported exactly like a missing one
    notification = _inbox(db, user_id).filter(Notification.id == notification_id).first()
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    if not notification.is_read:
        notification.is_read = True
        db.commit()
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    updated = _inbox(db, user_id, unread_only=True).update(
        {"is_read": True}, synchronize_session=False
    )
    db.commit()
    return updated


# ======================
# Email
# ======================

def render_email(recipient: User, notification: Notification) -> Tuple[str, str]:
    subject = EVENT_SUBJECTS.get(notification.event_type, "New notification")
    greeting = (recipient.name or "").strip() or "there"
    if notification.session_id:
        reference = f"session #{notification.session_id}"
    elif notification.request_id:
        reference = f"request #{notification.request_id}"
    else:
        reference = None

    lines = [f"Hi {greeting},", "", notification.message, ""]
    if reference:
        lines.append(f"Booking reference: {reference}")
    lines.append("Open Guidant to view details.")
    return f"{subject} on Guidant", "\n".join(lines)


def _deliver(to_email: str, subject: str, body_text: str, notification_id: int) -> None:
    try:
        sent = send_email(to_email=to_email, subject=subject, body_text=body_text)
    except Exception:
        logger.exception("Email worker crashed (notification_id=%s)", notification_id)
        return
    if not sent:
        logger.info("Email for notification %s was not sent", notification_id)


def dispatch_email_for_notification(db: Session, notification: Optional[Notification]) -> bool:
    """
    Mail a committed notification on a daemon thread.

    Returns whether a send was started. Never raises: the transition that
    produced the notification has already succeeded.
    """
    if notification is None or not is_email_enabled():
        return False
    try:
        recipient = user_crud.get_user(db, notification.recipient_id)
        if recipient is None or not recipient.email:
            return False
        subject, body_text = render_email(recipient, notification)
        threading.Thread(
            target=_deliver,
            args=(recipient.email, subject, body_text, notification.id),
            daemon=True,
        ).start()
    except Exception:
        logger.exception("Could not queue email for notification %s", notification.id)
        return False
    return True
