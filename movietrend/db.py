"""Supabase データベース操作モジュール.

検索集計テーブル（search_term ごとに1行）を扱う。
テーブルは Settings.schema で指定したスキーマに配置し、
count のインクリメントは DB 関数 increment_search_count で行う。
"""

from __future__ import annotations

import logging
import uuid

import httpx
from postgrest.exceptions import APIError
from supabase import create_client

from movietrend.config import (
    INCREMENT_FUNCTION,
    MATCH_LIMIT,
    PROBE_LIMIT,
    TRENDING_LIMIT,
    Settings,
)
from movietrend.models import Movie, SearchRecord, poster_url

logger = logging.getLogger(__name__)

# リモート呼び出しで発生しうる例外
REMOTE_ERRORS = (APIError, httpx.HTTPError)


def create_store(settings: Settings) -> SearchAnalyticsStore:
    """設定から Supabase クライアントを作り、ストアを返す."""
    client = create_client(settings.supabase_url, settings.supabase_key)
    return SearchAnalyticsStore(client, settings)


class SearchAnalyticsStore:
    """検索キーワードの集計（記録・トレンド取得）."""

    def __init__(self, client, settings: Settings):
        self._client = client
        self._settings = settings

    def _schema(self):
        return self._client.schema(self._settings.schema)

    def _table(self):
        """検索集計テーブルを参照する."""
        return self._schema().table(self._settings.table)

    def list_rows(self, limit: int = PROBE_LIMIT) -> tuple[int, list[SearchRecord]]:
        """テーブルの総行数と先頭 limit 件を取得する.

        Returns:
            (総行数, レコードのリスト)
        """
        resp = self._table().select("*", count="exact").limit(limit).execute()
        rows = resp.data or []
        total = resp.count if resp.count is not None else len(rows)
        return total, _to_records(rows)

    def record_search(self, query: str, movie: Movie) -> None:
        """検索を1回記録する.

        search_term が一致する行があれば先頭行の count を +1、
        なければ count=1 で新規作成する。query はそのまま使う（正規化しない）。

        Raises:
            ValueError: query が空、または一致した行に id がない場合
            APIError, httpx.HTTPError: リモート呼び出しの失敗（ログ出力後に再送出）
        """
        if not query:
            raise ValueError("query が空です")

        try:
            resp = (
                self._table()
                .select("*")
                .eq("search_term", query)
                .limit(MATCH_LIMIT)
                .execute()
            )
            rows = resp.data or []

            # NOTE: 同一 search_term の同時記録は両方が新規作成になりうる（未対策）
            if rows:
                row_id = rows[0].get("id")
                if not row_id:
                    logger.error("行 ID がありません: search_term=%s, row=%s", query, rows[0])
                    raise ValueError(f"行 ID がありません: search_term={query}")
                updated = self._schema().rpc(
                    INCREMENT_FUNCTION,
                    {"row_id": row_id, "amount": 1},
                ).execute()
                # 行が返らなければ更新されていない（読み込み後に削除された等）
                if not updated.data:
                    raise APIError({
                        "message": f"increment 対象の行がありません: id={row_id}",
                        "code": "P0002",
                    })
                logger.info("count 更新: search_term=%s, id=%s", query, row_id)
            else:
                row_id = uuid.uuid4().hex
                self._table().insert({
                    "id": row_id,
                    "search_term": query,
                    "movie_id": str(movie.id),
                    "title": movie.title,
                    "count": 1,
                    "poster_url": poster_url(movie.poster_path),
                }).execute()
                logger.info("新規作成: search_term=%s, id=%s", query, row_id)
        except REMOTE_ERRORS:
            logger.exception("検索回数の更新に失敗: search_term=%s", query)
            raise

    def top_searches(self, limit: int = TRENDING_LIMIT) -> list[SearchRecord] | None:
        """count の多い順に最大 limit 件を取得する.

        Returns:
            SearchRecord のリスト。リモート呼び出し失敗時は None。
        """
        if limit < 1:
            raise ValueError(f"limit は 1 以上: {limit}")

        try:
            resp = (
                self._table()
                .select("*")
                .order("count", desc=True)
                .limit(limit)
                .execute()
            )
        except REMOTE_ERRORS as e:
            logger.error("トレンド取得失敗: %s", e)
            return None

        return _to_records(resp.data or [])[:limit]


def probe(store: SearchAnalyticsStore) -> bool:
    """起動時の接続確認. 失敗しても例外は投げない."""
    logger.info("Supabase 接続確認中...")
    try:
        total, records = store.list_rows(PROBE_LIMIT)
    except REMOTE_ERRORS as e:
        logger.error("Supabase 接続失敗: %s", e)
        return False

    logger.info("Supabase 接続成功")
    logger.info("テーブル内の総行数: %d 件", total)
    if records:
        logger.info(
            "最近の検索: %s",
            ", ".join(f"{r.search_term} ({r.count})" for r in records[:PROBE_LIMIT]),
        )
    return True


def _to_records(rows: list[dict]) -> list[SearchRecord]:
    """行 dict を SearchRecord に変換する. 不正な行はスキップ."""
    records: list[SearchRecord] = []
    for row in rows:
        try:
            records.append(SearchRecord.from_row(row))
        except ValueError as e:
            logger.warning("不正な行をスキップ: %s", e)
    return records
