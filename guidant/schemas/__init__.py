# guidant/schemas/__init__.py

# User schemas
from .user import User, UserCreate, UserBase, UserPublic, PriceUpdate

# Auth schemas
from .auth import Token, TokenData, LoginRequest

# Session request schemas
from .session_request import (
    SessionRequestCreate,
    SessionRequestStatusUpdate,
    SessionRequestResponse,
    PendingCountResponse,
)

# Session schemas
from .session import (
    DirectSessionCreate,
    SessionReschedule,
    SessionRating,
    SessionPaymentUpdate,
    SessionResponse,
    JoinableSessionInfo,
)

# Merged booking views
from .booking import RequestView, SessionView, BookingView, DashboardSummary

# Payment schemas
from .payment import CheckoutOrder, PaymentCallback

__all__ = [
    "User",
    "UserCreate",
    "UserBase",
    "UserPublic",
    "PriceUpdate",
    "Token",
    "TokenData",
    "LoginRequest",
    "SessionRequestCreate",
    "SessionRequestStatusUpdate",
    "SessionRequestResponse",
    "PendingCountResponse",
    "DirectSessionCreate",
    "SessionReschedule",
    "SessionRating",
    "SessionPaymentUpdate",
    "SessionResponse",
    "JoinableSessionInfo",
    "RequestView",
    "SessionView",
    "BookingView",
    "DashboardSummary",
    "CheckoutOrder",
    "PaymentCallback",
]
