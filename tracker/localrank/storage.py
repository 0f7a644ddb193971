"""順位履歴を保存するキー・バリュー型ストア.

値は 1 キーにつき 1 つの文字列（JSON）で、保存のたびに丸ごと置き換える。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import create_client

from localrank.config import (
    HISTORY_BACKEND,
    HISTORY_DIR,
    SUPABASE_KV_TABLE,
    SUPABASE_SCHEMA,
    SUPABASE_SECRET_KEY,
    SUPABASE_URL,
)
from localrank.errors import ConfigurationError, PersistenceError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...


class MemoryBlobStore:
    """プロセス内だけで保持するストア（テスト用）."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileBlobStore:
    """ディレクトリ配下に 1 キー 1 ファイルで保存するストア.

    一時ファイルに書いてから os.replace で差し替えるため、
    途中まで書かれたファイルが読まれることはない。
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _file(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        file = self._file(key)
        try:
            return file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"履歴ファイルの読み込みに失敗: {file}: {e}") from e

    def put(self, key: str, value: str) -> None:
        file = self._file(key)
        try:
            file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=file.parent, prefix=f".{file.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp, file)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"履歴ファイルの書き込みに失敗: {file}: {e}") from e


class SupabaseBlobStore:
    """Supabase の key/value テーブルに保存するストア.

    テーブル定義: key text primary key, value text
    PostgREST のエラー応答と通信エラーは PersistenceError に変換する。
    """

    def __init__(self, client, schema: str = SUPABASE_SCHEMA, table: str = SUPABASE_KV_TABLE):
        self._client = client
        self._schema = schema
        self._table_name = table

    @classmethod
    def from_config(cls) -> "SupabaseBlobStore":
        if not SUPABASE_URL or not SUPABASE_SECRET_KEY:
            raise ConfigurationError("SUPABASE_URL / SUPABASE_SECRET_KEY not configured")
        return cls(create_client(SUPABASE_URL, SUPABASE_SECRET_KEY))

    def _table(self):
        return self._client.schema(self._schema).table(self._table_name)

    def get(self, key: str) -> str | None:
        try:
            resp = self._table().select("value").eq("key", key).limit(1).execute()
        except (APIError, httpx.HTTPError) as e:
            raise PersistenceError(f"Supabase 読み込み失敗: key={key}: {e}") from e

        if not resp.data:
            return None
        return resp.data[0].get("value")

    def put(self, key: str, value: str) -> None:
        try:
            self._table().upsert({"key": key, "value": value}).execute()
        except (APIError, httpx.HTTPError) as e:
            raise PersistenceError(f"Supabase 書き込み失敗: key={key}: {e}") from e
        logger.info("%s に key=%s を保存", self._table_name, key)


def create_blob_store(backend: str = HISTORY_BACKEND) -> BlobStore:
    """設定に応じたストアを生成する."""
    if backend == "supabase":
        return SupabaseBlobStore.from_config()
    if backend == "file":
        return JsonFileBlobStore(HISTORY_DIR)
    raise ConfigurationError(f"Unknown HISTORY_BACKEND: {backend}")
