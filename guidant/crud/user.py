"""
Identity store access.

Read-mostly lookups used by the lifecycle to validate parties and snapshot
names and prices. Every call is bounded by the database timeouts configured in
``guidant.database`` and surfaces ``DependencyTimeoutError`` instead of hanging.
"""

from typing import Optional

from sqlalchemy.orm import Session

from guidant import models
from guidant.exceptions import NotFoundError, dependency_guard

IDENTITY_STORE = "identity store"


def create_user(
    db: Session,
    *,
    name: str,
    email: str,
    password_hash: str,
    role: str = "student",
    price_per_session: float = 0.0,
) -> models.User:
    db_user = models.User(
        name=name,
        email=email,
        password_hash=password_hash,
        role=role,
        price_per_session=price_per_session if role == "mentor" else 0.0,
        is_active=True,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    with dependency_guard(IDENTITY_STORE):
        return db.query(models.User).filter(models.User.email == email).first()


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    with dependency_guard(IDENTITY_STORE):
        return db.query(models.User).filter(models.User.id == user_id).first()


def require_user(db: Session, user_id: int) -> models.User:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


def require_mentor(db: Session, mentor_id: int) -> models.User:
    """A user that exists and holds the mentor role; anything else is NotFound."""
    mentor = get_user(db, mentor_id)
    if not mentor or mentor.role != "mentor":
        raise NotFoundError("Mentor", mentor_id)
    return mentor


def update_price(db: Session, mentor: models.User, price_per_session: float) -> models.User:
    mentor.price_per_session = price_per_session
    db.commit()
    db.refresh(mentor)
    return mentor


def increment_sessions_completed(db: Session, mentor_id: int) -> None:
    """
    Atomic ``sessions_completed + 1`` executed by the database.

    Does not commit; the caller's transaction owns the change.
    """
    with dependency_guard(IDENTITY_STORE):
        updated = db.query(models.User).filter(
            models.User.id == mentor_id
        ).update(
            {models.User.sessions_completed: models.User.sessions_completed + 1},
            synchronize_session=False,
        )
    if not updated:
        raise NotFoundError("Mentor", mentor_id)
