"""远端项目存储适配器：写入、读取降级与行映射"""

import asyncio

from backend.core.remote_store import (
    RemoteProjectStore,
    SYNCED,
    NOT_ATTEMPTED,
    FAILED,
    record_to_row,
    row_to_record,
)
from backend.core.local_store import LocalStorage, LocalProjectStore
from backend.models.schemas import ProjectInput, ProjectStatus
from core.adapters.base import DuplicateRow


class TestUpsert:

    def test_insert_new_row_as_pending(self, sql_backend, local_store, record_factory):
        store = RemoteProjectStore(sql_backend, local_store)
        record = record_factory(id="11111111-1111-1111-1111-111111111111")

        outcome = asyncio.run(store.upsert_project(record))

        assert outcome.status == SYNCED
        assert outcome.synced
        assert outcome.remote_id == record.id
        row = sql_backend.get(record.id)
        assert row["approval_status"] == "pending"
        assert row["creator_id"] == "user-1"
        assert row["featured"] is False
        assert row["created_at"] == record.created_at

    def test_anonymous_creator_is_not_attempted(self, memory_backend, local_store, record_factory):
        store = RemoteProjectStore(memory_backend, local_store)

        outcome = asyncio.run(store.upsert_project(record_factory(creator_id="anonymous")))

        assert outcome.status == NOT_ATTEMPTED
        assert outcome.remote_id is None
        assert memory_backend.calls == []

    def test_missing_creator_is_not_attempted(self, memory_backend, local_store, record_factory):
        store = RemoteProjectStore(memory_backend, local_store)

        outcome = asyncio.run(store.upsert_project(record_factory(creator_id=None)))

        assert outcome.status == NOT_ATTEMPTED
        assert memory_backend.calls == []

    def test_backend_error_is_a_soft_failure(self, failing_backend, local_store, record_factory):
        store = RemoteProjectStore(failing_backend, local_store)

        outcome = asyncio.run(store.upsert_project(record_factory()))

        assert outcome.status == FAILED
        assert "connection refused" in outcome.message
        assert outcome.remote_id is None

    def test_existing_row_is_updated(self, sql_backend, local_store, record_factory):
        store = RemoteProjectStore(sql_backend, local_store)
        first = record_factory(id="first-id", description="v1", created_at="2026-01-01T00:00:00.000Z")
        second = record_factory(id="second-id", description="v2", created_at="2026-02-01T00:00:00.000Z")

        asyncio.run(store.upsert_project(first))
        outcome = asyncio.run(store.upsert_project(second))

        assert outcome.remote_id == "first-id"
        rows = sql_backend.select_all()
        assert len(rows) == 1
        assert rows[0]["description"] == "v2"
        assert rows[0]["created_at"] == "2026-01-01T00:00:00.000Z"
        assert rows[0]["approval_status"] == "pending"

    def test_concurrent_insert_is_retried_as_update(self, memory_backend, local_store, record_factory):
        winner = record_factory(id="winner", description="first")
        memory_backend.rows.append({**record_to_row(winner), "id": "winner", "creator_id": "user-1",
                                    "created_at": winner.created_at})

        # 存在性检查时对方还没提交
        original_find = memory_backend.find_by_title_and_creator
        misses = {"left": 1}

        def racy_find(title, creator_id):
            if misses["left"]:
                misses["left"] -= 1
                memory_backend.calls.append(("find", title, creator_id))
                return None
            return original_find(title, creator_id)

        memory_backend.find_by_title_and_creator = racy_find
        store = RemoteProjectStore(memory_backend, local_store)

        outcome = asyncio.run(store.upsert_project(record_factory(id="loser", description="second")))

        assert outcome.status == SYNCED
        assert outcome.remote_id == "winner"
        assert len(memory_backend.rows) == 1
        assert memory_backend.rows[0]["description"] == "second"
        assert ("update", "winner") in memory_backend.calls

    def test_renamed_record_updates_row_with_same_id(self, sql_backend, local_store, record_factory):
        store = RemoteProjectStore(sql_backend, local_store)
        asyncio.run(store.upsert_project(record_factory(id="p-1", title="Alpha")))

        outcome = asyncio.run(store.upsert_project(record_factory(id="p-1", title="Beta")))

        assert outcome.status == SYNCED
        assert outcome.remote_id == "p-1"
        assert [r["title"] for r in sql_backend.select_all()] == ["Beta"]

    def test_duplicate_id_is_retried_as_update(self, memory_backend, local_store, record_factory):
        memory_backend.rows.append({**record_to_row(record_factory(title="Alpha")), "id": "p-1",
                                    "creator_id": "user-1", "created_at": "2026-01-01T00:00:00.000Z"})
        original_get = memory_backend.get
        misses = {"left": 1}

        # 第一次按 id 查询时对方的插入还不可见
        def racy_get(row_id):
            if misses["left"]:
                misses["left"] -= 1
                return None
            return original_get(row_id)

        memory_backend.get = racy_get
        store = RemoteProjectStore(memory_backend, local_store)

        outcome = asyncio.run(store.upsert_project(record_factory(title="Renamed")))

        assert outcome.status == SYNCED
        assert outcome.remote_id == "p-1"
        assert [r["title"] for r in memory_backend.rows] == ["Renamed"]

    def test_duplicate_without_visible_row_fails_softly(self, memory_backend, local_store, record_factory):
        def always_duplicate(row):
            raise DuplicateRow("duplicate key")

        memory_backend.insert = always_duplicate
        store = RemoteProjectStore(memory_backend, local_store)

        outcome = asyncio.run(store.upsert_project(record_factory()))

        assert outcome.status == FAILED


class TestFetch:

    def test_fetch_all_is_newest_first(self, sql_backend, local_store, record_factory):
        store = RemoteProjectStore(sql_backend, local_store)
        asyncio.run(store.upsert_project(record_factory(id="old", title="Old", created_at="2026-01-01T00:00:00.000Z")))
        asyncio.run(store.upsert_project(record_factory(id="new", title="New", created_at="2026-03-01T00:00:00.000Z")))
        asyncio.run(store.upsert_project(record_factory(id="mid", title="Mid", created_at="2026-02-01T00:00:00.000Z")))

        projects = asyncio.run(store.fetch_all_projects())

        assert [p.id for p in projects] == ["new", "mid", "old"]

    def test_fetch_maps_remote_fields(self, sql_backend, local_store, record_factory):
        store = RemoteProjectStore(sql_backend, local_store)
        record = record_factory(
            long_description="long text",
            image_urls=["https://img/cover.png", "https://img/2.png"],
            demo_url="https://demo",
            funding_tiers=[{"name": "gold"}, {"name": "silver"}],
            roadmap=[{"title": "MVP", "completed": True}],
        )
        asyncio.run(store.upsert_project(record))

        fetched = asyncio.run(store.fetch_all_projects())[0]

        assert fetched.long_description == "long text"
        assert fetched.image_urls == ["https://img/cover.png", "https://img/2.png"]
        assert fetched.demo_url == "https://demo"
        assert fetched.funding_tiers == [{"name": "gold"}, {"name": "silver"}]
        assert fetched.team_size == 2
        assert fetched.roadmap[0].title == "MVP"
        assert fetched.roadmap[0].completed is True
        assert fetched.creator_name == "Creator"
        assert sql_backend.get(record.id)["cover_image"] == "https://img/cover.png"

    def test_fetch_failure_falls_back_to_local(self, failing_backend, local_store):
        local_store.save_project(ProjectInput(title="Offline", creator_id="user-1"))
        store = RemoteProjectStore(failing_backend, local_store)

        projects = asyncio.run(store.fetch_all_projects())

        assert [p.title for p in projects] == ["Offline"]

    def test_fetch_by_creator(self, sql_backend, local_store, record_factory):
        store = RemoteProjectStore(sql_backend, local_store)
        asyncio.run(store.upsert_project(record_factory(id="a", title="A", creator_id="user-1")))
        asyncio.run(store.upsert_project(record_factory(id="b", title="B", creator_id="user-2")))

        projects = asyncio.run(store.fetch_projects_by_creator("user-2"))

        assert [p.id for p in projects] == ["b"]

    def test_fetch_by_creator_falls_back_to_local(self, failing_backend, local_store):
        local_store.save_project(ProjectInput(title="Mine", creator_id="user-1"))
        local_store.save_project(ProjectInput(title="Theirs", creator_id="user-2"))
        store = RemoteProjectStore(failing_backend, local_store)

        projects = asyncio.run(store.fetch_projects_by_creator("user-1"))

        assert [p.title for p in projects] == ["Mine"]

    def test_fetch_project(self, sql_backend, local_store, record_factory):
        store = RemoteProjectStore(sql_backend, local_store)
        asyncio.run(store.upsert_project(record_factory(id="abc")))

        assert asyncio.run(store.fetch_project("abc")).title == "Alpha"
        assert asyncio.run(store.fetch_project("missing")) is None

    def test_fetch_project_falls_back_to_local(self, failing_backend, local_store):
        saved = local_store.save_project(ProjectInput(title="Offline"))
        store = RemoteProjectStore(failing_backend, local_store)

        assert asyncio.run(store.fetch_project(saved.id)).id == saved.id

    def test_fallback_with_local_storage_down(self, tmp_path, failing_backend):
        local = LocalProjectStore(LocalStorage(str(tmp_path), enabled=False))
        store = RemoteProjectStore(failing_backend, local)

        assert asyncio.run(store.fetch_all_projects()) == []
        assert asyncio.run(store.fetch_projects_by_creator("user-1")) == []
        assert asyncio.run(store.fetch_project("p-1")) is None

    def test_check_connection(self, sql_backend, failing_backend, local_store):
        assert asyncio.run(RemoteProjectStore(sql_backend, local_store).check_connection()) is True
        assert asyncio.run(RemoteProjectStore(failing_backend, local_store).check_connection()) is False


class TestMapping:

    def test_summary_is_truncated(self, record_factory):
        row = record_to_row(record_factory(long_description="x" * 800))
        assert len(row["summary"]) == 500
        assert row["requirements"] == "x" * 800

    def test_summary_falls_back_to_description(self, record_factory):
        row = record_to_row(record_factory(description="short"))
        assert row["summary"] == "short"

    def test_row_defaults(self):
        record = row_to_record({"id": 7, "title": "Bare", "status": "archived", "created_at": "2026-01-01T00:00:00Z"})

        assert record.id == "7"
        assert record.status == ProjectStatus.ACTIVE
        assert record.tags == []
        assert record.image_urls == []
        assert record.views == 0 and record.likes == 0 and record.comments == 0
        assert record.updated_at == record.created_at
