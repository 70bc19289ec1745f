"""ドメインモデル - 外部依存なしのデータ構造

Firestore との変換（to_record / from_record）もここで定義する。
Firestore Python クライアントは datetime をそのまま Timestamp として書き込み、
読み込み時は DatetimeWithNanoseconds（datetime のサブクラス）を返すため、
タイムスタンプ変換に SDK への依存は不要。

レコード形式（フィールド名が永続化の契約）:
  calendars/{id}: id, creatorUID, recipientName, recipientInterest, doors[], createdAt
  doors[]:        day, contentType, isUnlocked, text?, imageURL?, unlockedAt?
  users/{uid}:    uid, display_name?, created_calendars[], received_calendars[]

Calendar/Door は camelCase、User は snake_case。既存データとの互換のため揃えない。
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

DOOR_COUNT = 24


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _KeyFieldsMixin:
    """一度設定したら変更できないキーフィールドを持つ dataclass 用 mixin"""

    _KEY_FIELDS: tuple[str, ...] = ()

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._KEY_FIELDS and name in self.__dict__:
            raise AttributeError(f"{type(self).__name__}.{name} is immutable")
        super().__setattr__(name, value)


class DoorContentType(Enum):
    """ドアの中身の種類"""

    EMPTY = "empty"
    TEXT = "text"
    IMAGE = "image"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


def normalize_content_type(
    content_type: DoorContentType,
    text: str | None,
    image_url: str | None,
) -> DoorContentType:
    """
    中身の種類とペイロードの整合性を取る。

    text なのに本文がない、image なのに画像URLがない場合は EMPTY に落とす。
    エラーにはしない（業務ルールとしての正規化）。
    """
    if content_type is DoorContentType.TEXT and text is None:
        return DoorContentType.EMPTY
    if content_type is DoorContentType.IMAGE and image_url is None:
        return DoorContentType.EMPTY
    return content_type


def normalize_unlock_state(
    is_unlocked: bool,
    unlocked_at: datetime | None,
    now: datetime | None = None,
) -> datetime | None:
    """
    開封フラグと開封日時の整合性を取り、正しい unlocked_at を返す。

    unlocked_at は is_unlocked が True のときだけ持つ。
    開封済みなのに日時がない場合は now（省略時は現在時刻 UTC）で補う。
    """
    if not is_unlocked:
        return None
    return unlocked_at or now or _utcnow()


@dataclass
class Door(_KeyFieldsMixin):
    """1日分のドア（1〜24日）"""

    _KEY_FIELDS = ("day",)

    day: int
    content_type: DoorContentType = DoorContentType.EMPTY
    text: str | None = None
    image_url: str | None = None
    is_unlocked: bool = False
    unlocked_at: datetime | None = None

    def __post_init__(self) -> None:
        self.content_type = normalize_content_type(
            self.content_type, self.text, self.image_url
        )
        self.unlocked_at = normalize_unlock_state(self.is_unlocked, self.unlocked_at)

    @property
    def has_content(self) -> bool:
        return self.content_type is not DoorContentType.EMPTY

    # ── 中身の設定 ─────────────────────────────────────────────────────────

    def set_text(self, text: str) -> None:
        """テキストを設定（画像はクリア）"""
        self.text = text
        self.image_url = None
        self.content_type = normalize_content_type(DoorContentType.TEXT, text, None)

    def set_image(self, image_url: str) -> None:
        """画像URLを設定（テキストはクリア）"""
        self.text = None
        self.image_url = image_url
        self.content_type = normalize_content_type(
            DoorContentType.IMAGE, None, image_url
        )

    def clear_content(self) -> None:
        self.text = None
        self.image_url = None
        self.content_type = DoorContentType.EMPTY

    # ── 開封 ──────────────────────────────────────────────────────────────

    def can_be_unlocked(
        self,
        current_date: datetime | None = None,
        season_year: int | None = None,
    ) -> bool:
        """
        current_date 時点でこのドアを開けられるかを判定する。

        - 12月: 12月{day}日 0:00 以降なら開けられる
        - 1〜11月: 開けられない
        - season_year 指定時、その年の12月が過ぎていれば全ドア開けられる
          （season_year より前の年は常に開けられない）

        Args:
            current_date: 判定時刻（省略時は現在時刻 UTC）
            season_year: カレンダーの対象年
        """
        current_date = current_date or _utcnow()

        if season_year is not None:
            if current_date.year > season_year:
                return True
            if current_date.year < season_year:
                return False

        if current_date.month == 12:
            if not 1 <= self.day <= 31:
                return False
            door_date = datetime(
                current_date.year, 12, self.day, tzinfo=current_date.tzinfo
            )
            return current_date >= door_date

        return False

    def unlock(self, now: datetime | None = None) -> None:
        """
        ドアを開ける。開封済みなら何もしない（unlocked_at は最初の1回のみ）。
        is_unlocked と unlocked_at は常にこのメソッド経由で対で変わる。

        can_be_unlocked() は見ない。呼び出し側で判定すること。
        """
        if self.is_unlocked:
            return
        self.is_unlocked = True
        self.unlocked_at = now or _utcnow()

    # ── Firestore 変換 ────────────────────────────────────────────────────

    def to_record(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "day": self.day,
            "contentType": self.content_type.value,
            "isUnlocked": self.is_unlocked,
        }
        if self.text is not None:
            data["text"] = self.text
        if self.image_url is not None:
            data["imageURL"] = self.image_url
        if self.unlocked_at is not None:
            data["unlockedAt"] = self.unlocked_at
        return data

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Door | None:
        """
        Firestore のレコードから復元する。

        day / contentType / isUnlocked のいずれかが欠けている・型が違う・
        未知の contentType の場合は None を返す（例外は投げない）。
        """
        day = data.get("day")
        raw_type = data.get("contentType")
        is_unlocked = data.get("isUnlocked")

        # bool は int のサブクラスなので明示的に除外
        if not isinstance(day, int) or isinstance(day, bool):
            return None
        if not isinstance(raw_type, str) or not isinstance(is_unlocked, bool):
            return None
        try:
            content_type = DoorContentType(raw_type)
        except ValueError:
            return None

        text = data.get("text")
        image_url = data.get("imageURL")
        unlocked_at = data.get("unlockedAt")
        return cls(
            day=day,
            content_type=content_type,
            text=text if isinstance(text, str) else None,
            image_url=image_url if isinstance(image_url, str) else None,
            is_unlocked=is_unlocked,
            unlocked_at=unlocked_at if isinstance(unlocked_at, datetime) else None,
        )


def empty_doors() -> list[Door]:
    """1〜24日の空ドアを生成"""
    return [Door(day=day) for day in range(1, DOOR_COUNT + 1)]


@dataclass
class AdventCalendar(_KeyFieldsMixin):
    """24個のドアと贈り先情報をまとめたカレンダー"""

    _KEY_FIELDS = ("id", "created_at")

    id: str
    creator_uid: str
    recipient_name: str
    recipient_interest: str  # 例: "紅茶, 登山"
    doors: list[Door] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        # 明示的に渡されたドアは検証せずそのまま使う
        if not self.doors:
            self.doors = empty_doors()

    @property
    def season_year(self) -> int:
        return self.created_at.year

    @property
    def is_complete(self) -> bool:
        return all(door.has_content for door in self.doors)

    @property
    def filled_door_count(self) -> int:
        return sum(1 for door in self.doors if door.has_content)

    def get_door(self, day: int) -> Door | None:
        if not 1 <= day <= DOOR_COUNT:
            return None
        return next((door for door in self.doors if door.day == day), None)

    def update_door(self, door: Door) -> None:
        """同じ day のドアを差し替える。該当がなければ何もしない"""
        for index, existing in enumerate(self.doors):
            if existing.day == door.day:
                self.doors[index] = door
                return

    def unlockable_doors(self, current_date: datetime | None = None) -> list[Door]:
        return [
            door
            for door in self.doors
            if door.can_be_unlocked(current_date, self.season_year)
        ]

    # ── Firestore 変換 ────────────────────────────────────────────────────

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creatorUID": self.creator_uid,
            "recipientName": self.recipient_name,
            "recipientInterest": self.recipient_interest,
            "doors": [door.to_record() for door in self.doors],
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(
        cls, data: Mapping[str, Any], calendar_id: str
    ) -> AdventCalendar | None:
        """
        Firestore のレコードから復元する。id はドキュメントIDを使う。

        creatorUID / recipientName / recipientInterest が文字列でなければ None。
        doors が無い・壊れている場合は空ドア24個、createdAt が無い場合は現在時刻。
        """
        creator_uid = data.get("creatorUID")
        recipient_name = data.get("recipientName")
        recipient_interest = data.get("recipientInterest")
        if not all(
            isinstance(v, str)
            for v in (creator_uid, recipient_name, recipient_interest)
        ):
            return None

        raw_doors = data.get("doors")
        doors: list[Door] = []
        if isinstance(raw_doors, list) and all(
            isinstance(d, Mapping) for d in raw_doors
        ):
            parsed = (Door.from_record(d) for d in raw_doors)
            doors = [door for door in parsed if door is not None]

        created_at = data.get("createdAt")
        return cls(
            id=calendar_id,
            creator_uid=creator_uid,
            recipient_name=recipient_name,
            recipient_interest=recipient_interest,
            doors=doors,
            created_at=created_at if isinstance(created_at, datetime) else _utcnow(),
        )


@dataclass(frozen=True)
class AppUser:
    """アプリのユーザー。uid は Firebase Auth が採番する"""

    uid: str
    display_name: str | None = None
    created_calendars: list[str] = field(default_factory=list)
    received_calendars: list[str] = field(default_factory=list)

    def add_created_calendar(self, calendar_id: str) -> None:
        self.created_calendars.append(calendar_id)

    def add_received_calendar(self, calendar_id: str) -> None:
        self.received_calendars.append(calendar_id)

    def to_record(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "uid": self.uid,
            "created_calendars": list(self.created_calendars),
            "received_calendars": list(self.received_calendars),
        }
        if self.display_name is not None:
            data["display_name"] = self.display_name
        return data

    @classmethod
    def from_record(cls, data: Mapping[str, Any], uid: str) -> AppUser:
        """uid はドキュメントIDを使う。欠損フィールドはデフォルト値で補完し、失敗しない"""
        display_name = data.get("display_name")
        return cls(
            uid=uid,
            display_name=display_name if isinstance(display_name, str) else None,
            created_calendars=_string_list(data.get("created_calendars")),
            received_calendars=_string_list(data.get("received_calendars")),
        )


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


@dataclass(frozen=True)
class Identity:
    """認証プロバイダから得たサインイン中のユーザー"""

    uid: str
    is_anonymous: bool = True
    display_name: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None
