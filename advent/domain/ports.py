"""Ports - 外部サービスのインターフェース定義（ABC）

各Port（抽象基底クラス）は外部サービスとの契約を定義します。
実装クラス（Adapter）はこれらのABCを継承し、全ての抽象メソッドを実装する必要があります。
テストでは MagicMock(spec=...) やフェイク実装に差し替える。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from advent.domain.models import AdventCalendar, AppUser, Identity

AuthStateCallback = Callable[[Identity | None], None]


class IdentityProvider(ABC):
    """匿名サインインを提供する認証プロバイダ（Firebase Auth等）"""

    @abstractmethod
    async def sign_in_anonymously(self) -> Identity | None:
        """
        匿名サインインする。

        Returns:
            サインインしたユーザー。成功応答なのにユーザーが無い場合は None

        Raises:
            IdentityProviderError: プロバイダ呼び出しが失敗した場合
        """
        pass

    @abstractmethod
    def sign_out(self) -> None:
        """サインアウト。失敗時は例外を投げる"""
        pass

    @abstractmethod
    def add_state_listener(self, callback: AuthStateCallback) -> Any:
        """認証状態の変化を購読する。解除用のハンドルを返す"""
        pass

    @abstractmethod
    def remove_state_listener(self, handle: Any) -> None:
        """add_state_listener() で得たハンドルの購読を解除"""
        pass

    @abstractmethod
    def current_identity(self) -> Identity | None:
        """現在サインイン中のユーザー（未サインインなら None）"""
        pass


class CalendarRepository(ABC):
    """カレンダーの永続化（Firestore等）"""

    @abstractmethod
    def get(self, calendar_id: str) -> AdventCalendar | None:
        """カレンダーを取得。存在しない・レコードが壊れている場合は None"""
        pass

    @abstractmethod
    def save(self, calendar: AdventCalendar) -> str:
        """カレンダーを保存（上書き）。ドキュメントIDを返す"""
        pass

    @abstractmethod
    def delete(self, calendar_id: str) -> None:
        pass

    @abstractmethod
    def list_by_creator(self, uid: str) -> list[AdventCalendar]:
        """作成者の uid でカレンダー一覧を取得"""
        pass


class UserRepository(ABC):
    """ユーザーの永続化（Firestore等）"""

    @abstractmethod
    def get(self, uid: str) -> AppUser | None:
        """ユーザーを取得。存在しない場合は None"""
        pass

    @abstractmethod
    def save(self, user: AppUser) -> None:
        pass
