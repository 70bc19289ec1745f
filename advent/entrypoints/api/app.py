"""FastAPI アプリケーション

Advent Calendar バックエンド API。
Cloud Run Service として動作し、Firebase Auth（匿名サインイン）の ID トークンで認証する。

エンドポイント一覧:
  POST   /api/calendars
  GET    /api/calendars
  GET    /api/calendars/{id}
  PUT    /api/calendars/{id}/doors/{day}
  POST   /api/calendars/{id}/doors/{day}/open
  POST   /api/calendars/{id}/receive
  GET    /api/users/me
  GET    /health                ← 認証不要
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from advent.domain.errors import (
    AdventCalendarError,
    CalendarNotFoundError,
    DoorLockedError,
    DoorNotFoundError,
    PermissionDeniedError,
)
from advent.entrypoints.api.routes import calendars, users
from advent.logging_config import setup_logging

# ── ロギング初期化 ───────────────────────────────────────────────────────────
setup_logging()
logger = logging.getLogger(__name__)

# ── FastAPI アプリ ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Advent Calendar API",
    description="24日分のメッセージを贈るアドベントカレンダーのバックエンド API",
    version="1.0.0",
)

# ── ドメイン例外 → HTTP ステータス ────────────────────────────────────────────
_ERROR_STATUS: dict[type[AdventCalendarError], int] = {
    CalendarNotFoundError: status.HTTP_404_NOT_FOUND,
    DoorNotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    DoorLockedError: status.HTTP_409_CONFLICT,
}


@app.exception_handler(AdventCalendarError)
async def _handle_domain_error(
    request: Request, exc: AdventCalendarError
) -> JSONResponse:
    status_code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info(
        "Domain error: %s %s - %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# ── グローバル例外ミドルウェア ──────────────────────────────────────────────────
# add_middleware は後から登録したものが外側になる。
# CORSMiddleware より先に登録して内側に置き、500 レスポンスにも CORS ヘッダーを付ける。
#
# スタック: ServerErrorMiddleware → CORSMiddleware → このMW → ExceptionMiddleware → Routes


@app.middleware("http")
async def _catch_unhandled_exceptions(
    request: Request, call_next: Callable[[Request], Response]
) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(
            "Unhandled exception: %s %s - %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# ── CORS（アプリ / Web フロントエンドからのリクエストを許可） ─────────────────
# CORS_ORIGINS 環境変数でカンマ区切りのオリジンを指定可能
_extra_origins = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_extra_origins if _extra_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ── ルーター登録 ─────────────────────────────────────────────────────────────
_PREFIX = "/api"

app.include_router(calendars.router, prefix=_PREFIX)
app.include_router(users.router, prefix=_PREFIX)


@app.get("/health")
async def health() -> dict:
    """ヘルスチェックエンドポイント（Cloud Run の起動確認用）"""
    return {"status": "ok"}


logger.info("Advent Calendar API started")
