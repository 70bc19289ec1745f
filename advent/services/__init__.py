"""Services layer - ビジネスロジック"""

from advent.services.auth_session import AuthSession
from advent.services.calendar_service import CalendarService

__all__ = [
    "AuthSession",
    "CalendarService",
]
