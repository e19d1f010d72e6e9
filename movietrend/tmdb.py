"""TMDB 映画検索モジュール.

取得戦略:
  1. query あり: /search/movie
  2. query なし: /discover/movie（人気順）
"""

from __future__ import annotations

import logging

import requests

from movietrend.config import REQUEST_TIMEOUT, TMDB_BASE_URL, Settings
from movietrend.models import Movie

logger = logging.getLogger(__name__)


def build_request(query: str | None) -> tuple[str, dict]:
    """エンドポイント URL とクエリパラメータを返す."""
    if query:
        return f"{TMDB_BASE_URL}/search/movie", {"query": query}
    return f"{TMDB_BASE_URL}/discover/movie", {"sort_by": "popularity.desc"}


def fetch_movies(query: str | None, settings: Settings) -> list[Movie] | None:
    """TMDB から映画リストを取得する.

    Args:
        query: 検索文字列。空なら人気順の一覧を取得する。
        settings: TMDB_API_KEY を含む設定

    Returns:
        Movie のリスト。失敗時は None。

    Raises:
        ConfigError: TMDB_API_KEY が未設定の場合
    """
    api_key = settings.require_tmdb_key()
    url, params = build_request(query)
    headers = {
        "Accept": "application/json",
        "Authorization": f"Bearer {api_key}",
    }

    try:
        resp = requests.get(url, headers=headers, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        payload = resp.json()
    except requests.RequestException as e:
        logger.error("TMDB 取得失敗: query=%s, error=%s", query, e)
        return None
    except ValueError as e:
        logger.error("TMDB レスポンスの JSON パースエラー: query=%s, error=%s", query, e)
        return None

    return parse_movies(payload)


def parse_movies(payload: dict) -> list[Movie]:
    """TMDB レスポンスの results から Movie リストを作る."""
    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        logger.warning("TMDB レスポンスに results がありません")
        return []

    movies: list[Movie] = []
    for item in results:
        if not isinstance(item, dict):
            continue
        try:
            movies.append(Movie.from_api(item))
        except ValueError as e:
            logger.warning("不正な映画データをスキップ: %s", e)
    return movies
