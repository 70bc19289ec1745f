"""ユーザー API ルート

GET /api/users/me → 200 { uid, is_anonymous, display_name, created_calendars, received_calendars }
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from advent.entrypoints.api.deps import AuthInfo, get_auth_info, get_calendar_service
from advent.services.calendar_service import CalendarService

router = APIRouter(prefix="/users", tags=["users"])


class UserResponse(BaseModel):
    uid: str
    is_anonymous: bool
    display_name: str | None = None
    created_calendars: list[str]
    received_calendars: list[str]


@router.get("/me", response_model=UserResponse)
async def get_me(
    auth_info: AuthInfo = Depends(get_auth_info),
    service: CalendarService = Depends(get_calendar_service),
) -> UserResponse:
    """ログイン中のユーザーを返す（初回アクセス時に作成）"""
    user = service.ensure_user(auth_info.uid, auth_info.display_name or None)
    return UserResponse(
        uid=user.uid,
        is_anonymous=auth_info.is_anonymous,
        display_name=user.display_name,
        created_calendars=user.created_calendars,
        received_calendars=user.received_calendars,
    )
