"""設定管理 - 環境変数の型安全な読み込み"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from advent.domain.errors import ConfigLoadError


@dataclass(frozen=True)
class AppConfig:
    """アプリケーション設定"""
    project_id: str
    firebase_api_key: str
    auth_emulator_host: str = ""
    http_timeout: float = 10.0

    @classmethod
    def from_env(cls, require_api_key: bool = True) -> "AppConfig":
        """
        環境変数から設定を読み込む。

        Args:
            require_api_key: FIREBASE_API_KEY を必須にするか（API サーバは不要）
        """
        load_dotenv()

        project_id = os.getenv("PROJECT_ID")
        if not project_id:
            raise ConfigLoadError("PROJECT_ID is not set in environment")

        firebase_api_key = os.getenv("FIREBASE_API_KEY", "")
        if require_api_key and not firebase_api_key:
            raise ConfigLoadError("FIREBASE_API_KEY is not set in environment")

        raw_timeout = os.getenv("AUTH_HTTP_TIMEOUT", "10.0")
        try:
            http_timeout = float(raw_timeout)
        except ValueError as e:
            raise ConfigLoadError(
                f"AUTH_HTTP_TIMEOUT must be a number: {raw_timeout!r}"
            ) from e

        return cls(
            project_id=project_id,
            firebase_api_key=firebase_api_key,
            auth_emulator_host=os.getenv("FIREBASE_AUTH_EMULATOR_HOST", ""),
            http_timeout=http_timeout,
        )
