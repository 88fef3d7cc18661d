from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from guidant import schemas
from guidant.crud import user as user_crud
from guidant.database import get_db
from guidant.utils.security import create_access_token, get_password_hash, verify_password

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ===== REGISTER ENDPOINT =====

@router.post("/register", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
async def register(user_data: schemas.UserCreate, db: Session = Depends(get_db)):
    """Register a student or mentor account"""
    normalized_email = user_data.email.strip().lower()

    if user_crud.get_user_by_email(db, normalized_email):
        raise HTTPException(status_code=400, detail="Email already registered")

    return user_crud.create_user(
        db,
        name=user_data.name.strip(),
        email=normalized_email,
        password_hash=get_password_hash(user_data.password),
        role=user_data.role,
        price_per_session=user_data.price_per_session,
    )


# ===== LOGIN ENDPOINT =====

@router.post("/login", response_model=schemas.Token)
async def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    """Verify credentials and return access token"""
    user = user_crud.get_user_by_email(db, credentials.email.strip().lower())

    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")

    access_token = create_access_token(data={"sub": user.email, "role": user.role})

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "role": user.role
    }
