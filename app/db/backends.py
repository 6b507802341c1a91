"""
Key-value backends the persistence adapter writes tenant graphs to.

A backend stores opaque strings under string keys. Calls are blocking; the
adapter runs them in a worker thread.
"""

import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from app.core import config
from app.utils.supabase_utils import SupabaseClient, TENANT_PROJECTS_TABLE


class MemoryBackend:
    """Process-local store used in development and tests."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class FileBackend:
    """One JSON document per key inside a directory."""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self.directory / f"{safe_key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # Write then rename so a crash never leaves a half-written document
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)


class SupabaseBackend:
    """One row per key in the ``tenant_projects`` table."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def read(self, key: str) -> Optional[str]:
        row = self.client.select_one(TENANT_PROJECTS_TABLE, "key", key, columns="data")
        return row["data"] if row else None

    def write(self, key: str, value: str) -> None:
        self.client.upsert(
            TENANT_PROJECTS_TABLE,
            {
                "key": key,
                "data": value,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="key",
        )


def create_backend(name: Optional[str] = None):
    """
    Build the backend selected by ``DATABOX_STORAGE_BACKEND``.

    Args:
        name: ``memory``, ``file`` or ``supabase``; defaults to the configured one

    Returns:
        A backend instance
    """
    name = (name or config.STORAGE_BACKEND).lower()
    if name == "memory":
        return MemoryBackend()
    if name == "file":
        return FileBackend(config.DATA_DIR)
    if name == "supabase":
        client = SupabaseClient.get_client()
        if client is None:
            raise ValueError("Supabase storage selected but SUPABASE_URL/SUPABASE_KEY are not set")
        return SupabaseBackend(client)
    raise ValueError(f"Unknown storage backend: {name}")
