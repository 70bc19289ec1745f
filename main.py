"""Cloud Run デプロイ用エントリーポイント

起動コマンド:
    uvicorn main:app --host 0.0.0.0 --port ${PORT:-8080}
"""

from advent.entrypoints.api.app import app

__all__ = ["app"]
