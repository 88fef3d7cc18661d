from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ======================
# USER ACCOUNT SCHEMAS
# ======================

class UserBase(BaseModel):
    email: EmailStr
    role: Literal["student", "mentor"] = "student"


class UserCreate(UserBase):
    name: str = Field(..., min_length=1, max_length=100)
    # Bcrypt limit is 72 bytes
    password: str = Field(..., min_length=6, max_length=72)
    price_per_session: float = Field(0.0, ge=0)


class UserPublic(BaseModel):
    """What other parties may see about a user."""
    id: int
    name: str
    role: str
    price_per_session: float
    sessions_completed: int

    model_config = ConfigDict(from_attributes=True)


class User(UserPublic):
    email: EmailStr
    is_active: bool
    created_at: Optional[datetime] = None


# ======================
# MENTOR PRICING
# ======================

class PriceUpdate(BaseModel):
    price_per_session: float = Field(..., ge=0, description="Price charged per session")
