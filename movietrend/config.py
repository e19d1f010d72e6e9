"""設定モジュール — 環境変数・定数定義."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

_REQUIRED_VARS = (
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "SUPABASE_SCHEMA",
    "SUPABASE_TABLE",
)

# --- 検索集計テーブル ---
TRENDING_LIMIT = 5
MATCH_LIMIT = 5
PROBE_LIMIT = 5
INCREMENT_FUNCTION = "increment_search_count"

# --- TMDB ---
TMDB_BASE_URL = "https://api.themoviedb.org/3"
POSTER_URL_TEMPLATE = "https://image.tmdb.org/t/p/w500{poster_path}"

# --- リクエスト設定 ---
REQUEST_TIMEOUT = 15  # 秒

# --- ログ ---
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_DIR.mkdir(exist_ok=True)


class ConfigError(Exception):
    """必須の設定値が不足している."""


@dataclass(frozen=True)
class Settings:
    """接続先の設定値."""

    supabase_url: str  # エンドポイント
    supabase_key: str  # プロジェクトの API キー
    schema: str  # データベース (Postgres スキーマ)
    table: str  # 検索集計テーブル
    tmdb_api_key: str | None = None

    def require_tmdb_key(self) -> str:
        if not self.tmdb_api_key:
            raise ConfigError("TMDB_API_KEY が設定されていません")
        return self.tmdb_api_key


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """環境変数から設定を読み込む.

    Args:
        environ: 参照する環境変数。None なら os.environ。

    Raises:
        ConfigError: 必須の環境変数が未設定または空の場合
    """
    env = os.environ if environ is None else environ
    missing = [name for name in _REQUIRED_VARS if not env.get(name)]
    if missing:
        raise ConfigError(f"必須の環境変数が未設定です: {', '.join(missing)}")

    return Settings(
        supabase_url=env["SUPABASE_URL"],
        supabase_key=env["SUPABASE_KEY"],
        schema=env["SUPABASE_SCHEMA"],
        table=env["SUPABASE_TABLE"],
        tmdb_api_key=env.get("TMDB_API_KEY") or None,
    )
