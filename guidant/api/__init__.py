# guidant/api/__init__.py
# This file makes the api directory a Python package.

from . import auth
from . import booking
from . import notification
from . import payment
from . import session
from . import session_request
from . import users

__all__ = [
    "auth",
    "users",
    "session_request",
    "session",
    "payment",
    "booking",
    "notification",
]
