"""Factory - 依存性注入の組み立て

Firestore クライアント・リポジトリ・認証プロバイダを組み立て、
AuthSession と CalendarService を生成する。
"""

import logging
from dataclasses import dataclass

from google.cloud import firestore

from advent.adapters.firebase_auth import FirebaseAnonymousAuthProvider
from advent.adapters.firestore_repository import (
    FirestoreCalendarRepository,
    FirestoreUserRepository,
)
from advent.config import AppConfig
from advent.services.auth_session import AuthSession
from advent.services.calendar_service import CalendarService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:
    """組み立て済みのサービス一式"""

    auth_session: AuthSession
    calendar_service: CalendarService


def create_calendar_service(db: firestore.Client) -> CalendarService:
    return CalendarService(
        calendar_repo=FirestoreCalendarRepository(db),
        user_repo=FirestoreUserRepository(db),
    )


def create_app_container(config: AppConfig | None = None) -> AppContainer:
    """
    AppContainer を生成（全依存を組み立て）。

    Args:
        config: アプリケーション設定（Noneの場合は環境変数から読み込み）

    Raises:
        ConfigLoadError: 必須設定が不足している場合
    """
    if config is None:
        config = AppConfig.from_env()

    logger.info("Creating services with config: project_id=%s", config.project_id)

    db = firestore.Client(project=config.project_id)

    provider = FirebaseAnonymousAuthProvider(
        api_key=config.firebase_api_key,
        emulator_host=config.auth_emulator_host or None,
        timeout=config.http_timeout,
    )
    if config.auth_emulator_host:
        logger.info("Using Firebase Auth emulator: %s", config.auth_emulator_host)

    return AppContainer(
        auth_session=AuthSession(provider),
        calendar_service=create_calendar_service(db),
    )
