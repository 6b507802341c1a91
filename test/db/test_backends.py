import pytest
from unittest.mock import MagicMock, patch

from app.core import config
from app.db.backends import FileBackend, MemoryBackend, SupabaseBackend, create_backend
from app.db.client import Database
from app.utils.supabase_utils import TENANT_PROJECTS_TABLE


class TestFileBackend:
    """Documents stored on disk"""

    def test_missing_key_reads_none(self, tmp_path):
        assert FileBackend(str(tmp_path)).read("databox_projects_a") is None

    def test_write_then_read(self, tmp_path):
        backend = FileBackend(str(tmp_path / "data"))
        backend.write("databox_projects_a", "[]")
        backend.write("databox_projects_a", '[{"x": 1}]')

        assert backend.read("databox_projects_a") == '[{"x": 1}]'
        assert [p.name for p in (tmp_path / "data").iterdir()] == ["databox_projects_a.json"]

    def test_key_is_sanitized(self, tmp_path):
        backend = FileBackend(str(tmp_path))
        backend.write("databox_projects_../evil", "[]")
        assert (tmp_path / "databox_projects____evil.json").exists()

    @pytest.mark.asyncio
    async def test_survives_new_adapter(self, tmp_path):
        first = Database(backend=FileBackend(str(tmp_path)), max_retries=0)
        await first.save_projects("tenant", [])

        second = Database(backend=FileBackend(str(tmp_path)), max_retries=0)
        assert await second.load_projects("tenant") == []
        assert second.backend.read("databox_projects_tenant") == "[]"


class TestSupabaseBackend:
    """Rows in the tenant_projects table"""

    def test_read(self):
        client = MagicMock()
        client.select_one.return_value = {"data": "[]"}

        assert SupabaseBackend(client).read("databox_projects_a") == "[]"
        client.select_one.assert_called_once_with(
            TENANT_PROJECTS_TABLE, "key", "databox_projects_a", columns="data"
        )

    def test_read_missing_row(self):
        client = MagicMock()
        client.select_one.return_value = None
        assert SupabaseBackend(client).read("databox_projects_a") is None

    def test_write_upserts_on_key(self):
        client = MagicMock()
        SupabaseBackend(client).write("databox_projects_a", "[]")

        table, row = client.upsert.call_args.args
        assert table == TENANT_PROJECTS_TABLE
        assert row["key"] == "databox_projects_a"
        assert row["data"] == "[]"
        assert "updated_at" in row
        assert client.upsert.call_args.kwargs == {"on_conflict": "key"}


class TestCreateBackend:
    """Backend selection"""

    def test_memory(self):
        assert isinstance(create_backend("memory"), MemoryBackend)

    def test_file(self, monkeypatch, tmp_path):
        monkeypatch.setattr(config, "DATA_DIR", str(tmp_path))
        backend = create_backend("FILE")
        assert isinstance(backend, FileBackend)
        assert str(backend.directory) == str(tmp_path)

    def test_supabase_requires_credentials(self):
        with patch("app.db.backends.SupabaseClient.get_client", return_value=None):
            with pytest.raises(ValueError):
                create_backend("supabase")

    def test_supabase(self):
        client = MagicMock()
        with patch("app.db.backends.SupabaseClient.get_client", return_value=client):
            backend = create_backend("supabase")
        assert isinstance(backend, SupabaseBackend)
        assert backend.client is client

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_backend("redis")

    def test_default_uses_config(self, monkeypatch):
        monkeypatch.setattr(config, "STORAGE_BACKEND", "memory")
        assert isinstance(create_backend(), MemoryBackend)
