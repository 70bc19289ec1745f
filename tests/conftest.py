"""共通テストフィクスチャ

全テストから利用可能なモックオブジェクトとサンプルデータを提供。

モックの作成:
- リポジトリは MagicMock(spec=ABC) でメソッドシグネチャを保持
- 認証プロバイダは状態（サインイン中のユーザー・リスナー）を持つのでフェイク実装を使う
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from advent.domain.models import (
    AdventCalendar,
    AppUser,
    Door,
    DoorContentType,
    Identity,
)
from advent.domain.ports import CalendarRepository, IdentityProvider, UserRepository


class FakeIdentityProvider(IdentityProvider):
    """IdentityProvider のフェイク

    sign_in_result に Identity / None / 例外 を入れておくと sign_in_anonymously() が
    それを返す（例外なら送出する）。
    """

    def __init__(self, sign_in_result=None, sign_out_error=None):
        self.sign_in_result = sign_in_result
        self.sign_out_error = sign_out_error
        self.sign_in_calls = 0
        self.identity = None
        self.listeners = {}
        self.removed_handles = []
        self._next_handle = 0

    async def sign_in_anonymously(self):
        self.sign_in_calls += 1
        if isinstance(self.sign_in_result, Exception):
            raise self.sign_in_result
        if self.sign_in_result is not None:
            self._set(self.sign_in_result)
        return self.sign_in_result

    def sign_out(self):
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self._set(None)

    def add_state_listener(self, callback):
        self._next_handle += 1
        self.listeners[self._next_handle] = callback
        return self._next_handle

    def remove_state_listener(self, handle):
        self.removed_handles.append(handle)
        self.listeners.pop(handle, None)

    def current_identity(self):
        return self.identity

    def _set(self, identity):
        self.identity = identity
        for callback in list(self.listeners.values()):
            callback(identity)


# ========== サンプルデータ ==========

_CREATED_AT = datetime(2026, 11, 20, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_identity() -> Identity:
    """サンプル: 匿名サインイン済みユーザー"""
    return Identity(uid="abc", id_token="id-token", refresh_token="refresh-token")


@pytest.fixture
def fake_provider() -> FakeIdentityProvider:
    """未サインイン状態のフェイクプロバイダ"""
    return FakeIdentityProvider()


@pytest.fixture
def make_provider():
    """引数付きで FakeIdentityProvider を作るファクトリ"""
    return FakeIdentityProvider


@pytest.fixture
def sample_calendar() -> AdventCalendar:
    """サンプルカレンダー: 1日目にテキスト、2日目に画像"""
    calendar = AdventCalendar(
        id="cal-1",
        creator_uid="creator-uid",
        recipient_name="花子",
        recipient_interest="紅茶, 登山",
        created_at=_CREATED_AT,
    )
    calendar.update_door(
        Door(day=1, content_type=DoorContentType.TEXT, text="メリークリスマス")
    )
    calendar.update_door(
        Door(
            day=2,
            content_type=DoorContentType.IMAGE,
            image_url="https://example.com/tea.png",
        )
    )
    return calendar


@pytest.fixture
def sample_user() -> AppUser:
    """サンプルユーザー: カレンダーを1つ作成済み"""
    return AppUser(uid="creator-uid", display_name="太郎", created_calendars=["cal-1"])


# ========== モックフィクスチャ ==========


@pytest.fixture
def mock_calendar_repo(sample_calendar) -> MagicMock:
    """CalendarRepository のモック"""
    mock = MagicMock(spec=CalendarRepository)
    mock.get.return_value = sample_calendar
    mock.save.return_value = "cal-new"
    mock.list_by_creator.return_value = [sample_calendar]
    return mock


@pytest.fixture
def mock_user_repo(sample_user) -> MagicMock:
    """UserRepository のモック"""
    mock = MagicMock(spec=UserRepository)
    mock.get.return_value = sample_user
    return mock
