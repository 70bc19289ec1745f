"""ロギング設定モジュール

Cloud Run 上の API ではJSON形式（Cloud Logging 互換）、CLI などローカル実行では
テキスト形式でログを出力する。

使い方:
    from advent.logging_config import setup_logging
    setup_logging()

    # 構造化フィールドを付けたい場合
    logger.info("Opened door", extra={"extra_fields": {"day": 5}})

環境変数:
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL) デフォルト: INFO
    K_SERVICE / CLOUD_RUN_JOB: Cloud Run 環境判定（自動設定される）
"""

import json
import logging
import os

# リクエスト毎に INFO を出すライブラリは WARNING 以上に絞る
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "google.auth")


class CloudLoggingFormatter(logging.Formatter):
    """Cloud Logging互換のJSONフォーマッタ

    stdout に `severity` 付きの JSON を出すと Cloud Logging 側で
    ログレベルが正しくマッピングされる。
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "severity": _severity(record.levelno),
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_entry.update(extra_fields)
        return json.dumps(log_entry, ensure_ascii=False, default=str)


def _severity(levelno: int) -> str:
    if levelno >= logging.CRITICAL:
        return "CRITICAL"
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARNING"
    if levelno >= logging.INFO:
        return "INFO"
    if levelno >= logging.DEBUG:
        return "DEBUG"
    return "DEFAULT"


def setup_logging(level: str | None = None) -> None:
    """ログ設定を初期化する

    Args:
        level: ログレベル（省略時は LOG_LEVEL 環境変数、なければ INFO）
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    is_cloud = bool(os.getenv("K_SERVICE") or os.getenv("CLOUD_RUN_JOB"))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    handler = logging.StreamHandler()
    if is_cloud:
        handler.setFormatter(CloudLoggingFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
