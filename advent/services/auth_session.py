"""AuthSession - 認証プロバイダの薄いラッパー

プロセス全体のシングルトンにはせず、IdentityProvider を注入して生成する。
テストではフェイクのプロバイダに差し替える。

状態:
  SignedOut              ← provider.current_identity() が None
  SignedIn(identity)

排他制御は行わない。サインインとサインアウトを並行に呼んだ場合、
最後に適用された状態遷移が残る。
"""

from __future__ import annotations

import logging
from typing import Any

from advent.domain.errors import AuthError, UnknownAuthError
from advent.domain.models import Identity
from advent.domain.ports import AuthStateCallback, IdentityProvider

logger = logging.getLogger(__name__)


class AuthSession:
    """現在のユーザーと認証状態リスナー（最大1つ）を管理する"""

    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider
        self._listener_handle: Any | None = None

    @property
    def current_user(self) -> Identity | None:
        return self._provider.current_identity()

    @property
    def current_user_id(self) -> str | None:
        user = self._provider.current_identity()
        return user.uid if user else None

    @property
    def is_authenticated(self) -> bool:
        return self._provider.current_identity() is not None

    async def sign_in_anonymously(self) -> str:
        """
        匿名サインインして uid を返す。

        サインイン済みならプロバイダを呼ばずに現在の uid を返す。

        Raises:
            AuthError: プロバイダが失敗した場合（原因は __cause__）
            UnknownAuthError: 成功応答なのにユーザーが得られなかった場合
        """
        current = self._provider.current_identity()
        if current is not None:
            return current.uid

        try:
            identity = await self._provider.sign_in_anonymously()
        except Exception as e:
            logger.warning("Anonymous sign-in failed: %s", e)
            raise AuthError(str(e)) from e

        if identity is None:
            logger.error("Anonymous sign-in returned no user")
            raise UnknownAuthError()

        return identity.uid

    def sign_out(self) -> None:
        """
        サインアウトする。

        Raises:
            AuthError: プロバイダが失敗した場合（状態は変わらない）
        """
        try:
            self._provider.sign_out()
        except Exception as e:
            logger.warning("Sign-out failed: %s", e)
            raise AuthError(str(e)) from e

    def add_auth_state_listener(self, callback: AuthStateCallback) -> None:
        """認証状態リスナーを登録する。既存のリスナーは解除して置き換える"""
        if self._listener_handle is not None:
            self._provider.remove_state_listener(self._listener_handle)
        self._listener_handle = self._provider.add_state_listener(callback)

    def remove_auth_state_listener(self) -> None:
        if self._listener_handle is None:
            return
        self._provider.remove_state_listener(self._listener_handle)
        self._listener_handle = None
