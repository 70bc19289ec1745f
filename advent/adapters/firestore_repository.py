"""Firestore Repository Adapter

CalendarRepository と UserRepository の Firestore 実装。

Firestore コレクション構造:
  calendars/{calendarId}   ← カレンダー（24ドアを doors 配列に埋め込み）
  users/{uid}              ← ユーザー（作成・受け取ったカレンダーIDのリスト）
"""

from __future__ import annotations

import logging
import uuid

from google.cloud import firestore

from advent.domain.models import AdventCalendar, AppUser
from advent.domain.ports import CalendarRepository, UserRepository

logger = logging.getLogger(__name__)

_CALENDARS = "calendars"
_USERS = "users"


class FirestoreCalendarRepository(CalendarRepository):
    """
    Firestore を使った CalendarRepository 実装。

    ドアはサブコレクションにせず、カレンダードキュメントの doors 配列に保存する。
    """

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def get(self, calendar_id: str) -> AdventCalendar | None:
        """カレンダーを取得。存在しない・必須フィールド欠損の場合は None を返す"""
        snap = self._db.collection(_CALENDARS).document(calendar_id).get()
        if not snap.exists:
            return None
        calendar = AdventCalendar.from_record(snap.to_dict() or {}, snap.id)
        if calendar is None:
            logger.warning("Malformed calendar record: calendar_id=%s", calendar_id)
        return calendar

    def save(self, calendar: AdventCalendar) -> str:
        """カレンダーを丸ごと書き込む。id が空なら採番した新しいカレンダーとして保存"""
        if not calendar.id:
            calendar = AdventCalendar(
                id=str(uuid.uuid4()),
                creator_uid=calendar.creator_uid,
                recipient_name=calendar.recipient_name,
                recipient_interest=calendar.recipient_interest,
                doors=calendar.doors,
                created_at=calendar.created_at,
            )
        self._db.collection(_CALENDARS).document(calendar.id).set(
            calendar.to_record()
        )
        logger.info(
            "Saved calendar: calendar_id=%s, filled=%d",
            calendar.id,
            calendar.filled_door_count,
        )
        return calendar.id

    def delete(self, calendar_id: str) -> None:
        self._db.collection(_CALENDARS).document(calendar_id).delete()
        logger.info("Deleted calendar: calendar_id=%s", calendar_id)

    def list_by_creator(self, uid: str) -> list[AdventCalendar]:
        """作成者のカレンダー一覧を新しい順で取得（壊れたレコードは除外）"""
        snaps = (
            self._db.collection(_CALENDARS)
            .where("creatorUID", "==", uid)
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
            .stream()
        )
        calendars = []
        for snap in snaps:
            calendar = AdventCalendar.from_record(snap.to_dict() or {}, snap.id)
            if calendar is None:
                logger.warning("Skipping malformed calendar: calendar_id=%s", snap.id)
                continue
            calendars.append(calendar)
        return calendars


class FirestoreUserRepository(UserRepository):
    """
    Firestore を使った UserRepository 実装。

    users/{uid} を管理する。uid はレコード本文ではなくドキュメントIDから取る。
    """

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def get(self, uid: str) -> AppUser | None:
        snap = self._db.collection(_USERS).document(uid).get()
        if not snap.exists:
            return None
        return AppUser.from_record(snap.to_dict() or {}, snap.id)

    def save(self, user: AppUser) -> None:
        self._db.collection(_USERS).document(user.uid).set(user.to_record())
        logger.info(
            "Saved user: uid=%s, created=%d, received=%d",
            user.uid,
            len(user.created_calendars),
            len(user.received_calendars),
        )
