"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from advent.domain.errors import (
    AdventCalendarError,
    AuthError,
    CalendarNotFoundError,
    ConfigLoadError,
    DoorLockedError,
    DoorNotFoundError,
    IdentityProviderError,
    PermissionDeniedError,
    UnknownAuthError,
)
from advent.domain.models import (
    DOOR_COUNT,
    AdventCalendar,
    AppUser,
    Door,
    DoorContentType,
    Identity,
    empty_doors,
    normalize_content_type,
    normalize_unlock_state,
)
from advent.domain.ports import (
    CalendarRepository,
    IdentityProvider,
    UserRepository,
)

__all__ = [
    # Models
    "DOOR_COUNT",
    "DoorContentType",
    "Door",
    "AdventCalendar",
    "AppUser",
    "Identity",
    "empty_doors",
    "normalize_content_type",
    "normalize_unlock_state",
    # Errors
    "AdventCalendarError",
    "ConfigLoadError",
    "IdentityProviderError",
    "AuthError",
    "UnknownAuthError",
    "CalendarNotFoundError",
    "DoorNotFoundError",
    "DoorLockedError",
    "PermissionDeniedError",
    # Ports
    "IdentityProvider",
    "CalendarRepository",
    "UserRepository",
]
