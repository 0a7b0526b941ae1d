"""
Shop Service — 設定

すべての設定は環境変数から読み込む。
DATABASE_URL を省略した場合はカレントディレクトリの SQLite を使う。
REDIS_URL を省略した場合はイベントを Pub/Sub に発行しない（イベントストアには残る）。
"""

import logging
import os

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./shop.db")
REDIS_URL = os.environ.get("REDIS_URL")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
