import pytest
import time
import uuid
from fastapi.testclient import TestClient

from app.core.auth import Auth
from app.db.backends import MemoryBackend
from app.db.client import Database
from app.main import create_application
from app.models.schemas import Column
from app.services.project_registry import ProjectRegistry


class FlakyBackend(MemoryBackend):
    """Memory backend that fails a configurable number of calls."""

    def __init__(self):
        super().__init__()
        self.failing_writes = 0
        self.failing_reads = 0
        self.write_calls = 0
        self.read_calls = 0

    def read(self, key):
        self.read_calls += 1
        if self.failing_reads:
            self.failing_reads -= 1
            raise ConnectionError("backend unavailable")
        return super().read(key)

    def write(self, key, value):
        self.write_calls += 1
        if self.failing_writes:
            self.failing_writes -= 1
            raise ConnectionError("backend unavailable")
        super().write(key, value)


class SlowBackend(MemoryBackend):
    """Memory backend whose calls block for a while before finishing."""

    def __init__(self):
        super().__init__()
        self.read_delay = 0
        self.write_delay = 0
        self.fail_writes = False

    def read(self, key):
        time.sleep(self.read_delay)
        return super().read(key)

    def write(self, key, value):
        time.sleep(self.write_delay)
        if self.fail_writes:
            raise ConnectionError("write rejected after a delay")
        super().write(key, value)


@pytest.fixture
def tenant_id():
    return f"user_{uuid.uuid4().hex[:12]}"


@pytest.fixture
def backend():
    return FlakyBackend()


@pytest.fixture
def database(backend):
    return Database(backend=backend, timeout=1, max_retries=2, backoff=0)


@pytest.fixture
def registry(tenant_id, database):
    return ProjectRegistry(tenant_id, database)


@pytest.fixture
def product_columns():
    return [
        Column(name="id", type="int", primary_key=True, auto_increment=True),
        Column(name="name", type="varchar", required=True, length=50),
        Column(name="price", type="decimal", precision=2),
    ]


@pytest.fixture
def test_app(database):
    return create_application(database)


@pytest.fixture
def client(test_app):
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(tenant_id):
    token = Auth.create_access_token(tenant_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def slow_backend():
    return SlowBackend()


@pytest.fixture
def slow_database(slow_backend):
    return Database(backend=slow_backend, timeout=0.05, max_retries=0, backoff=0)
