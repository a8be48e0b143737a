import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from backend.models import Base
from backend.models.schemas import ProjectRecord
from backend.core.local_store import LocalStorage, LocalProjectStore
from backend.core.remote_store import RemoteProjectStore
from backend.core.project_sync import ProjectSyncService
from core.adapters.base import BaseStoreBackend, BackendError, DuplicateRow
from core.adapters.sql import SQLStoreBackend


class InMemoryBackend(BaseStoreBackend):
    """记录所有调用的内存后端，模拟带唯一约束的 projects 表"""

    def __init__(self, config=None):
        super().__init__(config)
        self.rows = []
        self.calls = []

    def _find(self, title, creator_id):
        for row in self.rows:
            if row["title"] == title and row["creator_id"] == creator_id:
                return row
        return None

    def find_by_title_and_creator(self, title, creator_id):
        self.calls.append(("find", title, creator_id))
        row = self._find(title, creator_id)
        return dict(row) if row else None

    def insert(self, row):
        self.calls.append(("insert", row["id"]))
        if self._find(row["title"], row["creator_id"]) or any(r["id"] == row["id"] for r in self.rows):
            raise DuplicateRow("duplicate key value violates unique constraint")
        self.rows.append(dict(row))
        return dict(row)

    def update(self, row_id, changes):
        self.calls.append(("update", row_id))
        for row in self.rows:
            if row["id"] == row_id:
                row.update(changes)
                return dict(row)
        raise BackendError(f"Project row not found: {row_id}")

    def select_all(self):
        self.calls.append(("select_all",))
        return sorted((dict(r) for r in self.rows), key=lambda r: r["created_at"], reverse=True)

    def select_by_creator(self, creator_id):
        self.calls.append(("select_by_creator", creator_id))
        return [r for r in self.select_all() if r["creator_id"] == creator_id]

    def get(self, row_id):
        self.calls.append(("get", row_id))
        for row in self.rows:
            if row["id"] == row_id:
                return dict(row)
        return None

    def ping(self):
        return True


class FailingBackend(BaseStoreBackend):
    """网络不可用：所有操作都失败"""

    def __init__(self, config=None):
        super().__init__(config)
        self.calls = 0

    def _fail(self, *args):
        self.calls += 1
        raise BackendError("connection refused")

    find_by_title_and_creator = _fail
    insert = _fail
    update = _fail
    select_all = _fail
    select_by_creator = _fail
    get = _fail

    def ping(self):
        return False


def make_record(**overrides):
    data = {
        "id": "p-1",
        "title": "Alpha",
        "description": "first project",
        "category": "Technology",
        "tags": ["python"],
        "creator_id": "user-1",
        "creator_name": "Ada",
        "created_at": "2026-01-01T00:00:00.000Z",
        "updated_at": "2026-01-01T00:00:00.000Z",
    }
    data.update(overrides)
    return ProjectRecord(**data)


@pytest.fixture
def local_storage(tmp_path):
    return LocalStorage(str(tmp_path / "local"), namespace="test")


@pytest.fixture
def local_store(local_storage):
    return LocalProjectStore(local_storage)


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'remote.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def sql_backend(session_factory):
    return SQLStoreBackend({"session_factory": session_factory})


@pytest.fixture
def memory_backend():
    return InMemoryBackend()


@pytest.fixture
def failing_backend():
    return FailingBackend()


@pytest.fixture
def sql_service(local_store, sql_backend):
    return ProjectSyncService(local_store, RemoteProjectStore(sql_backend, local_store))


@pytest.fixture
def memory_service(local_store, memory_backend):
    return ProjectSyncService(local_store, RemoteProjectStore(memory_backend, local_store))


@pytest.fixture
def offline_service(local_store, failing_backend):
    return ProjectSyncService(local_store, RemoteProjectStore(failing_backend, local_store))


@pytest.fixture
def record_factory():
    return make_record
