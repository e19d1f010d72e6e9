"""データモデル定義."""

from __future__ import annotations

from dataclasses import dataclass

from movietrend.config import POSTER_URL_TEMPLATE


def poster_url(poster_path: str | None) -> str:
    """TMDB の poster_path から画像 URL を組み立てる."""
    return POSTER_URL_TEMPLATE.format(poster_path=poster_path)


@dataclass
class Movie:
    """TMDB の映画1件（使う項目のみ）."""

    id: int
    title: str
    poster_path: str | None = None

    @classmethod
    def from_api(cls, item: dict) -> Movie:
        """TMDB API の結果1件から生成する.

        Raises:
            ValueError: id / title が取れない場合
        """
        movie_id = item.get("id")
        title = item.get("title")
        if not isinstance(movie_id, int) or isinstance(movie_id, bool):
            raise ValueError(f"不正な movie id: {movie_id!r}")
        if not isinstance(title, str) or not title:
            raise ValueError(f"不正な title: {title!r}")
        return cls(id=movie_id, title=title, poster_path=item.get("poster_path"))


@dataclass
class SearchRecord:
    """検索集計テーブルの1行."""

    id: str  # 行 ID
    search_term: str
    movie_id: str
    title: str
    count: int  # 1 以上
    poster_url: str

    @classmethod
    def from_row(cls, row: dict) -> SearchRecord:
        """リモートの行 dict を検証して変換する.

        Raises:
            ValueError: 必須カラムの欠落・型不正
        """
        try:
            record = cls(
                id=str(row["id"]),
                search_term=row["search_term"],
                movie_id=str(row["movie_id"]),
                title=row["title"],
                count=row["count"],
                poster_url=row["poster_url"],
            )
        except KeyError as e:
            raise ValueError(f"カラムがありません: {e}") from e

        if not isinstance(record.search_term, str) or not record.search_term:
            raise ValueError(f"不正な search_term: {record.search_term!r}")
        if not isinstance(record.count, int) or isinstance(record.count, bool) or record.count < 1:
            raise ValueError(f"不正な count: {record.count!r}")
        if not isinstance(record.title, str):
            raise ValueError(f"不正な title: {record.title!r}")
        if not isinstance(record.poster_url, str):
            raise ValueError(f"不正な poster_url: {record.poster_url!r}")
        return record
