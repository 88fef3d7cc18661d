from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from guidant import models, schemas
from guidant.crud import user as user_crud
from guidant.database import get_db
from guidant.exceptions import PermissionDeniedError
from guidant.utils.security import get_current_user

router = APIRouter(prefix="/users", tags=["Users"])


# ======================
# GET: Current user
# ======================
@router.get("/me", response_model=schemas.User)
def get_me(current_user: models.User = Depends(get_current_user)):
    return current_user


# ======================
# PATCH: Mentor price
# ======================
@router.patch("/me/price", response_model=schemas.User)
def update_my_price(
    payload: schemas.PriceUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Set the price snapshotted onto every session booked from now on."""
    if not current_user.is_mentor:
        raise PermissionDeniedError("Only mentors can set a session price")
    return user_crud.update_price(db, current_user, payload.price_per_session)


# ======================
# GET: Public user basics
# ======================
@router.get("/{user_id}", response_model=schemas.UserPublic)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return user_crud.require_user(db, user_id)
