"""FastAPI 依存性注入

Firebase Auth ID トークン検証と Firestore / CalendarService の初期化を担当する。
アプリは匿名サインインで得た ID トークンを Authorization: Bearer で送ってくる。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import firebase_admin
import firebase_admin.auth as fb_auth
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import credentials as fb_creds
from google.cloud import firestore

from advent.config import AppConfig
from advent.entrypoints.factory import create_calendar_service
from advent.services.calendar_service import CalendarService

logger = logging.getLogger(__name__)

# ── Firebase Admin 初期化（プロセス内で1回のみ） ────────────────────────────────

_firebase_app: firebase_admin.App | None = None


def _get_firebase_app() -> firebase_admin.App:
    global _firebase_app
    if _firebase_app is None:
        try:
            _firebase_app = firebase_admin.get_app()
        except ValueError:
            cred = fb_creds.ApplicationDefault()
            project_id = os.environ.get("PROJECT_ID")
            _firebase_app = firebase_admin.initialize_app(
                cred,
                options={"projectId": project_id} if project_id else {},
            )
            logger.info("Firebase Admin initialized project=%s", project_id)
    return _firebase_app


# ── 認証 ────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AuthInfo:
    """Firebase Auth ID トークンから取得した認証情報"""

    uid: str
    is_anonymous: bool
    display_name: str


_bearer = HTTPBearer(auto_error=False)


async def get_auth_info(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> AuthInfo:
    """
    Authorization: Bearer <id_token> ヘッダーを検証して AuthInfo を返す。

    Raises:
        HTTPException(401): ヘッダーが無い・トークンが無効な場合
    """
    if creds is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
        )

    _get_firebase_app()
    try:
        decoded = fb_auth.verify_id_token(creds.credentials)
    except Exception as e:
        logger.warning("Invalid Firebase ID token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired Firebase ID token",
        ) from e

    provider = (decoded.get("firebase") or {}).get("sign_in_provider", "")
    return AuthInfo(
        uid=decoded["uid"],
        is_anonymous=provider == "anonymous",
        display_name=decoded.get("name", ""),
    )


async def get_current_uid(
    auth_info: AuthInfo = Depends(get_auth_info),
) -> str:
    """uid のみを返す"""
    return auth_info.uid


# ── Firestore クライアント（シングルトン） ──────────────────────────────────────

_firestore_client: firestore.Client | None = None


def _get_firestore_client() -> firestore.Client:
    global _firestore_client
    if _firestore_client is None:
        # API サーバはサインインしないので FIREBASE_API_KEY は不要
        config = AppConfig.from_env(require_api_key=False)
        _firestore_client = firestore.Client(project=config.project_id)
        logger.info("Firestore client initialized project=%s", config.project_id)
    return _firestore_client


# ── サービス依存 ───────────────────────────────────────────────────────────────


def get_calendar_service() -> CalendarService:
    """CalendarService を返す依存関数"""
    return create_calendar_service(_get_firestore_client())
