"""storage モジュールのテスト（Supabase はモック）."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from postgrest.exceptions import APIError

from localrank.errors import ConfigurationError, PersistenceError
from localrank.storage import (
    JsonFileBlobStore,
    MemoryBlobStore,
    SupabaseBlobStore,
    create_blob_store,
)


class TestMemoryBlobStore:
    """MemoryBlobStore のテスト."""

    def test_get_put(self):
        store = MemoryBlobStore()
        assert store.get("k") is None
        store.put("k", "v")
        assert store.get("k") == "v"


class TestJsonFileBlobStore:
    """JsonFileBlobStore のテスト."""

    def test_missing_file(self, tmp_path):
        assert JsonFileBlobStore(tmp_path).get("history") is None

    def test_put_replaces_whole_file(self, tmp_path):
        store = JsonFileBlobStore(tmp_path / "data")
        store.put("history", '{"a": 1, "long": "' + "x" * 100 + '"}')
        store.put("history", "[]")

        assert store.get("history") == "[]"
        assert (tmp_path / "data" / "history.json").read_text(encoding="utf-8") == "[]"

    def test_no_temp_files_left(self, tmp_path):
        store = JsonFileBlobStore(tmp_path)
        store.put("history", "[]")
        assert [p.name for p in tmp_path.iterdir()] == ["history.json"]

    def test_write_failure(self, tmp_path):
        store = JsonFileBlobStore(tmp_path)
        with patch("localrank.storage.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceError):
                store.put("history", "[]")
        assert list(tmp_path.iterdir()) == []

    def test_invalid_utf8(self, tmp_path):
        (tmp_path / "history.json").write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(PersistenceError):
            JsonFileBlobStore(tmp_path).get("history")

    def test_read_failure(self, tmp_path):
        (tmp_path / "history.json").mkdir()
        with pytest.raises(PersistenceError):
            JsonFileBlobStore(tmp_path).get("history")


class TestSupabaseBlobStore:
    """SupabaseBlobStore のテスト."""

    def _store(self):
        client = MagicMock()
        chain = MagicMock()
        client.schema.return_value.table.return_value = chain
        for method in ("select", "eq", "limit", "upsert"):
            getattr(chain, method).return_value = chain
        return SupabaseBlobStore(client, schema="rank_history", table="kv_store"), client, chain

    def test_get(self):
        store, client, chain = self._store()
        chain.execute.return_value = MagicMock(data=[{"value": "[]"}])

        assert store.get("business-ranking-history") == "[]"
        client.schema.assert_called_with("rank_history")
        client.schema.return_value.table.assert_called_with("kv_store")
        chain.eq.assert_called_once_with("key", "business-ranking-history")

    def test_get_missing(self):
        store, _, chain = self._store()
        chain.execute.return_value = MagicMock(data=[])
        assert store.get("business-ranking-history") is None

    def test_put_upserts(self):
        store, _, chain = self._store()
        chain.execute.return_value = MagicMock(data=[])

        store.put("business-ranking-history", "[]")

        chain.upsert.assert_called_once_with({"key": "business-ranking-history", "value": "[]"})

    def test_errors_wrapped(self):
        store, _, chain = self._store()
        chain.execute.side_effect = httpx.ConnectError("network down")
        with pytest.raises(PersistenceError):
            store.get("k")

        chain.execute.side_effect = APIError({"message": "permission denied", "code": "42501"})
        with pytest.raises(PersistenceError):
            store.put("k", "[]")

    def test_unexpected_errors_propagate(self):
        store, _, chain = self._store()
        chain.execute.side_effect = KeyError("data")
        with pytest.raises(KeyError):
            store.get("k")


class TestCreateBlobStore:
    """create_blob_store のテスト."""

    def test_file_backend(self):
        assert isinstance(create_blob_store("file"), JsonFileBlobStore)

    @patch("localrank.storage.create_client")
    @patch("localrank.storage.SUPABASE_SECRET_KEY", "secret")
    @patch("localrank.storage.SUPABASE_URL", "https://example.supabase.co")
    def test_supabase_backend(self, mock_create_client):
        store = create_blob_store("supabase")

        assert isinstance(store, SupabaseBlobStore)
        mock_create_client.assert_called_once_with("https://example.supabase.co", "secret")

    @patch("localrank.storage.SUPABASE_URL", None)
    def test_supabase_not_configured(self):
        with pytest.raises(ConfigurationError):
            create_blob_store("supabase")

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_blob_store("redis")
