# guidant/models/__init__.py
# Import models in dependency order
from .user import User
from .session_request import SessionRequest
from .session import Session
from .notification import Notification

__all__ = ["User", "SessionRequest", "Session", "Notification"]
