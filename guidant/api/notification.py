from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from guidant import models
from guidant.database import get_db
from guidant.services import notification_service
from guidant.utils.security import get_current_user

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _as_dict(n: models.Notification) -> dict:
    return {
        "id": n.id,
        "recipient_id": n.recipient_id,
        "actor_id": n.actor_id,
        "request_id": n.request_id,
        "session_id": n.session_id,
        "event_type": n.event_type,
        "message": n.message,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


@router.get("/my")
def get_my_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    inbox = notification_service.list_inbox(
        db, current_user.id, unread_only=unread_only, limit=limit
    )
    return [_as_dict(n) for n in inbox]


@router.get("/unread-count")
def get_unread_count(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"unread_count": notification_service.unread_count(db, current_user.id)}


@router.patch("/read-all")
def mark_all_notifications_read(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    count = notification_service.mark_all_read(db, current_user.id)
    return {"message": "All notifications marked as read", "updated": count}


@router.patch("/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = notification_service.mark_read(db, current_user.id, notification_id)
    return {"message": "Notification marked as read", "id": notification.id}
