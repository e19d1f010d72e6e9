"""映画トレンド — メインエントリーポイント.

処理フロー:
  1. ロギング・設定の初期化
  2. Supabase 接続確認（結果は使わない）
  3. サブコマンド実行
     - search: TMDB 検索 → 先頭の映画で検索回数を記録
     - trending: 検索回数の多い順に表示
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime

from movietrend.config import LOG_DIR, TRENDING_LIMIT, ConfigError, Settings, load_settings
from movietrend.db import REMOTE_ERRORS, SearchAnalyticsStore, create_store, probe
from movietrend.models import Movie, SearchRecord
from movietrend.tmdb import fetch_movies


def setup_logging() -> None:
    """ロギングの初期設定."""
    log_file = LOG_DIR / f"movietrend_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def positive_int(value: str) -> int:
    """1 以上の整数を受け付ける argparse 用の型."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"整数ではありません: {value}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"1 以上を指定してください: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """コマンドライン引数のパーサーを作る."""
    parser = argparse.ArgumentParser(prog="movietrend", description="映画検索とトレンド表示")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="映画を検索して検索回数を記録する")
    search.add_argument("query", nargs="?", default="", help="検索文字列（省略時は人気順）")

    trending = sub.add_parser("trending", help="よく検索されている映画を表示する")
    trending.add_argument("--limit", type=positive_int, default=TRENDING_LIMIT)
    return parser


def search_movies(
    query: str, store: SearchAnalyticsStore, settings: Settings
) -> list[Movie] | None:
    """映画を検索し、結果があれば先頭の映画で検索を記録する.

    記録の失敗は画面側と同じく握りつぶす（ログのみ）。
    """
    logger = logging.getLogger(__name__)
    movies = fetch_movies(query, settings)
    if movies is None:
        return None

    if query and movies:
        try:
            store.record_search(query, movies[0])
        except REMOTE_ERRORS:
            logger.warning("検索の記録をスキップ: query=%s", query)
    return movies


def format_movies(movies: list[Movie]) -> str:
    """検索結果を「id<TAB>タイトル」の行にする."""
    return "\n".join(f"{m.id}\t{m.title}" for m in movies)


def format_trending(records: list[SearchRecord]) -> str:
    """トレンドを順位付きの行にする."""
    return "\n".join(
        f"{i}. {r.title} ({r.search_term}, {r.count}回)"
        for i, r in enumerate(records, start=1)
    )


def run(argv: list[str] | None = None) -> int:
    """メイン処理. 終了コードを返す."""
    args = build_parser().parse_args(argv)
    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error("設定エラー: %s", e)
        return 2

    store = create_store(settings)
    probe(store)

    if args.command == "search":
        try:
            movies = search_movies(args.query, store, settings)
        except ConfigError as e:
            logger.error("設定エラー: %s", e)
            return 2
        if movies is None:
            print("映画を取得できませんでした")
            return 1
        if not movies:
            print("該当する映画がありません")
            return 0
        print(format_movies(movies))
        return 0

    records = store.top_searches(args.limit)
    if not records:
        print("トレンドデータがありません")
        return 0
    print(format_trending(records))
    return 0


if __name__ == "__main__":
    sys.exit(run())
