"""CalendarService - カレンダー作成・編集・開封のアプリケーションロジック

Ports（ABC）にのみ依存し、Firestore 等の実装詳細からは独立。
CLI と API の両方から使う。

ユーザーとカレンダーは ID で弱く参照し合うだけで、整合性は保証しない
（作成者の created_calendars への追加はカレンダー保存の後に行う）。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from advent.domain.errors import (
    CalendarNotFoundError,
    DoorLockedError,
    DoorNotFoundError,
    PermissionDeniedError,
)
from advent.domain.models import AdventCalendar, AppUser, Door
from advent.domain.ports import CalendarRepository, UserRepository

logger = logging.getLogger(__name__)


class CalendarService:
    """
    カレンダーのユースケースをまとめる。

    処理フロー（贈る側）:
    1. create_calendar() で空ドア24個のカレンダーを作成
    2. set_door_text() / set_door_image() で中身を詰める
    3. カレンダーIDを相手に共有

    処理フロー（受け取る側）:
    1. receive_calendar() で受け取り一覧に追加
    2. 12月に入ったら open_door() で1日ずつ開ける
    """

    def __init__(
        self,
        calendar_repo: CalendarRepository,
        user_repo: UserRepository,
    ) -> None:
        """
        Args:
            calendar_repo: カレンダーの永続化（Firestore等）
            user_repo: ユーザーの永続化（Firestore等）
        """
        self._calendars = calendar_repo
        self._users = user_repo

    # ── ユーザー ─────────────────────────────────────────────────────────────

    def ensure_user(self, uid: str, display_name: str | None = None) -> AppUser:
        """ユーザーを取得。初回アクセスなら作成して保存する"""
        user = self._users.get(uid)
        if user is not None:
            return user
        user = AppUser(uid=uid, display_name=display_name)
        self._users.save(user)
        logger.info("Created user: uid=%s", uid)
        return user

    # ── 贈る側 ───────────────────────────────────────────────────────────────

    def create_calendar(
        self, creator_uid: str, recipient_name: str, recipient_interest: str
    ) -> AdventCalendar:
        calendar = AdventCalendar(
            id="",
            creator_uid=creator_uid,
            recipient_name=recipient_name,
            recipient_interest=recipient_interest,
        )
        calendar_id = self._calendars.save(calendar)
        # save() で採番された ID で作り直す（id はイミュータブル）
        calendar = AdventCalendar(
            id=calendar_id,
            creator_uid=calendar.creator_uid,
            recipient_name=calendar.recipient_name,
            recipient_interest=calendar.recipient_interest,
            doors=calendar.doors,
            created_at=calendar.created_at,
        )

        user = self.ensure_user(creator_uid)
        user.add_created_calendar(calendar_id)
        self._users.save(user)

        logger.info(
            "Created calendar: uid=%s, calendar_id=%s", creator_uid, calendar_id
        )
        return calendar

    def get_calendar(self, calendar_id: str) -> AdventCalendar:
        """
        Raises:
            CalendarNotFoundError: 存在しない・レコードが壊れている場合
        """
        calendar = self._calendars.get(calendar_id)
        if calendar is None:
            raise CalendarNotFoundError(f"Calendar not found: {calendar_id}")
        return calendar

    def set_door_text(
        self, uid: str, calendar_id: str, day: int, text: str
    ) -> AdventCalendar:
        return self._edit_door(uid, calendar_id, day, lambda door: door.set_text(text))

    def set_door_image(
        self, uid: str, calendar_id: str, day: int, image_url: str
    ) -> AdventCalendar:
        return self._edit_door(
            uid, calendar_id, day, lambda door: door.set_image(image_url)
        )

    def clear_door(self, uid: str, calendar_id: str, day: int) -> AdventCalendar:
        return self._edit_door(uid, calendar_id, day, Door.clear_content)

    def delete_calendar(self, uid: str, calendar_id: str) -> None:
        """
        カレンダーを削除する（作成者のみ）。

        作成者の created_calendars からも外す。受け取った側の
        received_calendars には残り、list_received() でスキップされる。
        """
        calendar = self.get_calendar(calendar_id)
        self._require_creator(uid, calendar, "delete the calendar")
        self._calendars.delete(calendar_id)

        user = self._users.get(uid)
        if user is not None and calendar_id in user.created_calendars:
            user.created_calendars.remove(calendar_id)
            self._users.save(user)
        logger.info("Deleted calendar: uid=%s, calendar_id=%s", uid, calendar_id)

    def list_created(self, uid: str) -> list[AdventCalendar]:
        return self._calendars.list_by_creator(uid)

    # ── 受け取る側 ───────────────────────────────────────────────────────────

    def receive_calendar(self, uid: str, calendar_id: str) -> AdventCalendar:
        """受け取ったカレンダーをユーザーの一覧に追加する（重複チェックなし）"""
        calendar = self.get_calendar(calendar_id)
        user = self.ensure_user(uid)
        user.add_received_calendar(calendar_id)
        self._users.save(user)
        logger.info("Received calendar: uid=%s, calendar_id=%s", uid, calendar_id)
        return calendar

    def list_received(self, uid: str) -> list[AdventCalendar]:
        """受け取ったカレンダー一覧。削除済み・壊れたものはスキップ"""
        user = self._users.get(uid)
        if user is None:
            return []
        calendars = []
        for calendar_id in user.received_calendars:
            calendar = self._calendars.get(calendar_id)
            if calendar is None:
                logger.warning(
                    "Received calendar missing: uid=%s, calendar_id=%s",
                    uid,
                    calendar_id,
                )
                continue
            calendars.append(calendar)
        return calendars

    def open_door(
        self,
        uid: str,
        calendar_id: str,
        day: int,
        now: datetime | None = None,
    ) -> Door:
        """
        ドアを開ける。開封済みなら保存せずそのまま返す。

        開けられるのは receive_calendar() で受け取ったユーザーだけ。
        作成者は自分のカレンダーを受け取っていても開けられない。

        Raises:
            CalendarNotFoundError: カレンダーが存在しない
            PermissionDeniedError: 受け取っていない・作成者本人
            DoorNotFoundError: 指定日のドアが無い
            DoorLockedError: まだ開けられない日
        """
        calendar = self.get_calendar(calendar_id)
        self._require_recipient(uid, calendar)
        door = self._require_door(calendar, day)
        if door.is_unlocked:
            return door
        if not door.can_be_unlocked(now, calendar.season_year):
            raise DoorLockedError(f"Door {day} cannot be opened yet")

        door.unlock(now)
        calendar.update_door(door)
        self._calendars.save(calendar)
        logger.info(
            "Opened door: uid=%s, calendar_id=%s, day=%d", uid, calendar_id, day
        )
        return door

    # ── 内部ヘルパー ──────────────────────────────────────────────────────────

    def _edit_door(
        self,
        uid: str,
        calendar_id: str,
        day: int,
        edit: Callable[[Door], None],
    ) -> AdventCalendar:
        calendar = self.get_calendar(calendar_id)
        self._require_creator(uid, calendar, "edit doors")
        door = self._require_door(calendar, day)

        edit(door)
        calendar.update_door(door)
        self._calendars.save(calendar)
        logger.info(
            "Updated door: calendar_id=%s, day=%d, content_type=%s",
            calendar_id,
            day,
            door.content_type.value,
        )
        return calendar

    @staticmethod
    def _require_creator(uid: str, calendar: AdventCalendar, action: str) -> None:
        if calendar.creator_uid != uid:
            raise PermissionDeniedError(f"Only the creator can {action}")

    def _require_recipient(self, uid: str, calendar: AdventCalendar) -> None:
        if calendar.creator_uid == uid:
            raise PermissionDeniedError("The creator cannot open doors")
        user = self._users.get(uid)
        if user is None or calendar.id not in user.received_calendars:
            raise PermissionDeniedError(
                f"Calendar not received: calendar_id={calendar.id}"
            )

    @staticmethod
    def _require_door(calendar: AdventCalendar, day: int) -> Door:
        door = calendar.get_door(day)
        if door is None:
            raise DoorNotFoundError(f"Door not found: day={day}")
        return door
