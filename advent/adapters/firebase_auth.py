"""Firebase Auth Adapter

Identity Toolkit REST API を使った匿名サインインの IdentityProvider 実装。
firebase_admin はトークン検証（サーバ側）専用で匿名サインインができないため、
クライアント SDK と同じ REST エンドポイントを httpx で直接呼ぶ。

  POST {base}/v1/accounts:signUp?key={api_key}  {"returnSecureToken": true}
  → {"localId": uid, "idToken": ..., "refreshToken": ...}

FIREBASE_AUTH_EMULATOR_HOST が設定されている場合はエミュレータに接続する。
サインアウトはローカル状態の破棄のみ（Firebase クライアント SDK と同じ）。
"""

from __future__ import annotations

import itertools
import logging

import httpx

from advent.domain.errors import IdentityProviderError
from advent.domain.models import Identity
from advent.domain.ports import AuthStateCallback, IdentityProvider

logger = logging.getLogger(__name__)

_PRODUCTION_BASE_URL = "https://identitytoolkit.googleapis.com"
_SIGN_UP_PATH = "/v1/accounts:signUp"


class FirebaseAnonymousAuthProvider(IdentityProvider):
    """Firebase Auth の匿名サインイン"""

    def __init__(
        self,
        api_key: str,
        emulator_host: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            api_key: Firebase Web API キー
            emulator_host: Auth エミュレータの host:port（省略時は本番）
            timeout: HTTP タイムアウト秒
            http_client: テスト用に差し替える httpx クライアント
        """
        self._api_key = api_key
        self._timeout = timeout
        self._http_client = http_client
        if emulator_host:
            self._base_url = f"http://{emulator_host}/identitytoolkit.googleapis.com"
        else:
            self._base_url = _PRODUCTION_BASE_URL

        self._identity: Identity | None = None
        self._listeners: dict[int, AuthStateCallback] = {}
        self._handles = itertools.count(1)

    async def sign_in_anonymously(self) -> Identity | None:
        url = f"{self._base_url}{_SIGN_UP_PATH}"
        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await self._post(client, url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(
                "Anonymous sign-in rejected: status=%s, error=%s",
                e.response.status_code,
                message,
            )
            raise IdentityProviderError(f"Sign-in rejected: {message}") from e
        except httpx.HTTPError as e:
            logger.error("Anonymous sign-in request failed: %s", e)
            raise IdentityProviderError(f"Sign-in request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error(
                "Sign-in response is not JSON: status=%s", response.status_code
            )
            raise IdentityProviderError("Sign-in response is not valid JSON") from e
        if not isinstance(body, dict):
            raise IdentityProviderError("Sign-in response is not a JSON object")

        uid = body.get("localId")
        if not uid:
            logger.warning("Sign-in response has no localId")
            return None

        identity = Identity(
            uid=uid,
            is_anonymous=True,
            display_name=body.get("displayName") or None,
            id_token=body.get("idToken"),
            refresh_token=body.get("refreshToken"),
        )
        self._set_identity(identity)
        logger.info("Signed in anonymously: uid=%s", uid)
        return identity

    def sign_out(self) -> None:
        uid = self._identity.uid if self._identity else None
        self._set_identity(None)
        logger.info("Signed out: uid=%s", uid)

    def add_state_listener(self, callback: AuthStateCallback) -> int:
        handle = next(self._handles)
        self._listeners[handle] = callback
        return handle

    def remove_state_listener(self, handle: int) -> None:
        self._listeners.pop(handle, None)

    def current_identity(self) -> Identity | None:
        return self._identity

    # ── 内部ヘルパー ──────────────────────────────────────────────────────────

    async def _post(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        return await client.post(
            url,
            params={"key": self._api_key},
            json={"returnSecureToken": True},
        )

    def _set_identity(self, identity: Identity | None) -> None:
        self._identity = identity
        # 通知中の登録・解除に備えてコピーして回す
        for handle, callback in list(self._listeners.items()):
            try:
                callback(identity)
            except Exception:
                logger.exception("Auth state listener failed: handle=%s", handle)


def _error_message(response: httpx.Response) -> str:
    """Identity Toolkit のエラー応答 {"error": {"message": ...}} からメッセージを取り出す"""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text or f"HTTP {response.status_code}"
