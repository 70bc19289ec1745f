"""カレンダー API ルート

POST /api/calendars                         → 201 CalendarResponse
GET  /api/calendars                         → 200 [CalendarResponse...]（?received=true で受け取り一覧）
GET  /api/calendars/{id}                    → 200 CalendarResponse
DELETE /api/calendars/{id}                  → 204（作成者のみ）
PUT  /api/calendars/{id}/doors/{day}        → 200 CalendarResponse（作成者のみ）
POST /api/calendars/{id}/doors/{day}/open   → 200 DoorResponse（受け取った人のみ）
POST /api/calendars/{id}/receive            → 200 CalendarResponse

作成者以外には、まだ開いていないドアの中身（text / image_url）を返さない。
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from advent.domain.models import AdventCalendar, Door
from advent.entrypoints.api.deps import get_calendar_service, get_current_uid
from advent.services.calendar_service import CalendarService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/calendars", tags=["calendars"])


class CreateCalendarRequest(BaseModel):
    recipient_name: str
    recipient_interest: str = ""


class DoorUpdateRequest(BaseModel):
    # 本文・画像URLが無い text / image は empty として扱う
    content_type: Literal["empty", "text", "image"]
    text: str | None = None
    image_url: str | None = None


class DoorResponse(BaseModel):
    day: int
    content_type: str
    text: str | None = None
    image_url: str | None = None
    is_unlocked: bool
    unlocked_at: datetime | None = None


class CalendarResponse(BaseModel):
    id: str
    creator_uid: str
    recipient_name: str
    recipient_interest: str
    created_at: datetime
    filled_door_count: int
    is_complete: bool
    doors: list[DoorResponse]


def _door_response(door: Door, reveal: bool = True) -> DoorResponse:
    show = reveal or door.is_unlocked
    return DoorResponse(
        day=door.day,
        content_type=door.content_type.value,
        text=door.text if show else None,
        image_url=door.image_url if show else None,
        is_unlocked=door.is_unlocked,
        unlocked_at=door.unlocked_at,
    )


def _calendar_response(calendar: AdventCalendar, uid: str) -> CalendarResponse:
    is_creator = calendar.creator_uid == uid
    return CalendarResponse(
        id=calendar.id,
        creator_uid=calendar.creator_uid,
        recipient_name=calendar.recipient_name,
        recipient_interest=calendar.recipient_interest,
        created_at=calendar.created_at,
        filled_door_count=calendar.filled_door_count,
        is_complete=calendar.is_complete,
        doors=[_door_response(d, reveal=is_creator) for d in calendar.doors],
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CalendarResponse)
async def create_calendar(
    body: CreateCalendarRequest,
    uid: str = Depends(get_current_uid),
    service: CalendarService = Depends(get_calendar_service),
) -> CalendarResponse:
    """空ドア24個のカレンダーを作成する"""
    calendar = service.create_calendar(
        uid, body.recipient_name, body.recipient_interest
    )
    return _calendar_response(calendar, uid)


@router.get("", response_model=list[CalendarResponse])
async def list_calendars(
    received: bool = False,
    uid: str = Depends(get_current_uid),
    service: CalendarService = Depends(get_calendar_service),
) -> list[CalendarResponse]:
    """作成したカレンダー一覧（received=true なら受け取った一覧）を返す"""
    calendars = service.list_received(uid) if received else service.list_created(uid)
    return [_calendar_response(c, uid) for c in calendars]


@router.get("/{calendar_id}", response_model=CalendarResponse)
async def get_calendar(
    calendar_id: str,
    uid: str = Depends(get_current_uid),
    service: CalendarService = Depends(get_calendar_service),
) -> CalendarResponse:
    return _calendar_response(service.get_calendar(calendar_id), uid)


@router.delete("/{calendar_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_calendar(
    calendar_id: str,
    uid: str = Depends(get_current_uid),
    service: CalendarService = Depends(get_calendar_service),
) -> None:
    service.delete_calendar(uid, calendar_id)


@router.put("/{calendar_id}/doors/{day}", response_model=CalendarResponse)
async def update_door(
    calendar_id: str,
    day: int,
    body: DoorUpdateRequest,
    uid: str = Depends(get_current_uid),
    service: CalendarService = Depends(get_calendar_service),
) -> CalendarResponse:
    """ドアの中身を設定する"""
    if body.content_type == "text" and body.text is not None:
        calendar = service.set_door_text(uid, calendar_id, day, body.text)
    elif body.content_type == "image" and body.image_url is not None:
        calendar = service.set_door_image(uid, calendar_id, day, body.image_url)
    else:
        calendar = service.clear_door(uid, calendar_id, day)
    return _calendar_response(calendar, uid)


@router.post("/{calendar_id}/doors/{day}/open", response_model=DoorResponse)
async def open_door(
    calendar_id: str,
    day: int,
    uid: str = Depends(get_current_uid),
    service: CalendarService = Depends(get_calendar_service),
) -> DoorResponse:
    """ドアを開ける（12月{day}日以降のみ）"""
    door = service.open_door(uid, calendar_id, day)
    return _door_response(door)


@router.post("/{calendar_id}/receive", response_model=CalendarResponse)
async def receive_calendar(
    calendar_id: str,
    uid: str = Depends(get_current_uid),
    service: CalendarService = Depends(get_calendar_service),
) -> CalendarResponse:
    """共有されたカレンダーを受け取り一覧に追加する"""
    calendar = service.receive_calendar(uid, calendar_id)
    logger.info("Calendar received via API: uid=%s, calendar_id=%s", uid, calendar_id)
    return _calendar_response(calendar, uid)
