"""テスト共通のフィクスチャ.

FakeSupabase は db モジュールが使う PostgREST のメソッドチェーン
（schema / table / select / eq / order / limit / insert / rpc / execute）
だけをメモリ上で再現する。
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from movietrend.config import Settings
from movietrend.db import SearchAnalyticsStore


class _Query:
    def __init__(self, backend: FakeSupabase, table: str):
        self._backend = backend
        self._table = table
        self._filters: list[tuple[str, object]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None
        self._insert: dict | None = None
        self._count = False

    def select(self, *columns, count=None):
        self._count = count is not None
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, size):
        self._limit = size
        return self

    def insert(self, data):
        self._insert = dict(data)
        return self

    def execute(self):
        self._backend.calls.append(("table", self._table, self._insert is not None))
        self._backend.check_failure()
        rows = self._backend.tables.setdefault(self._table, [])
        if self._insert is not None:
            rows.append(self._insert)
            return SimpleNamespace(data=[dict(self._insert)], count=None)

        result = [r for r in rows if all(r.get(c) == v for c, v in self._filters)]
        if self._order is not None:
            column, desc = self._order
            result = sorted(result, key=lambda r: r[column], reverse=desc)
        total = len(result)
        if self._limit is not None:
            result = result[: self._limit]
        return SimpleNamespace(
            data=[dict(r) for r in result],
            count=total if self._count else None,
        )


class _Rpc:
    def __init__(self, backend: FakeSupabase, name: str, params: dict):
        self._backend = backend
        self._name = name
        self._params = params

    def execute(self):
        self._backend.calls.append(("rpc", self._name, self._params))
        self._backend.check_failure()
        if self._backend.before_rpc is not None:
            self._backend.before_rpc()
        if self._name != "increment_search_count":
            raise APIError({"message": f"function {self._name} does not exist"})
        for rows in self._backend.tables.values():
            for row in rows:
                if row["id"] == self._params["row_id"]:
                    row["count"] += self._params["amount"]
                    return SimpleNamespace(data=dict(row), count=None)
        return SimpleNamespace(data=None, count=None)


class _Schema:
    def __init__(self, backend: FakeSupabase):
        self._backend = backend

    def table(self, name):
        return _Query(self._backend, name)

    def rpc(self, name, params):
        return _Rpc(self._backend, name, params)


class FakeSupabase:
    """メモリ上の Supabase クライアント."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.calls: list[tuple] = []
        self.fail = False
        self.before_rpc = None  # rpc 実行直前に呼ぶフック

    def schema(self, name):
        return _Schema(self)

    def check_failure(self):
        if self.fail:
            raise APIError({"message": "service unavailable", "code": "503"})

    def rows(self, table="search_stats") -> list[dict]:
        return self.tables.get(table, [])


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="test-key",
        schema="movietrend",
        table="search_stats",
        tmdb_api_key="tmdb-token",
    )


@pytest.fixture
def fake_client() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def store(fake_client, settings) -> SearchAnalyticsStore:
    return SearchAnalyticsStore(fake_client, settings)
