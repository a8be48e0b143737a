# backend/core/remote_store.py
import asyncio
import logging
from typing import Dict, Any, List, Optional

from pydantic import BaseModel, ValidationError

from core.adapters.base import BaseStoreBackend, DuplicateRow
from core.utils import utcnow_iso, is_valid_creator, truncate
from ..models.schemas import ProjectRecord, ProjectStatus, ApprovalStatus
from .errors import RemoteSyncFailed, RemoteFetchFailed, InvalidCreator, StorageUnavailable
from .local_store import LocalProjectStore

logger = logging.getLogger(__name__)

SYNCED = "synced"
NOT_ATTEMPTED = "not_attempted"
FAILED = "failed"

_VALID_STATUSES = {s.value for s in ProjectStatus}


class UpsertOutcome(BaseModel):
    status: str
    remote_id: Optional[str] = None
    message: Optional[str] = None

    @property
    def synced(self) -> bool:
        return self.status == SYNCED


def record_to_row(record: ProjectRecord) -> Dict[str, Any]:
    """规范项目 -> 远端行中可变的列（不含 creator_id / approval_status / created_at）"""
    return {
        "title": record.title,
        "description": record.description,
        "summary": truncate(record.long_description or record.description),
        "category": record.category,
        "tags": list(record.tags),
        "deadline": record.deadline,
        "status": record.status.value,
        "cover_image": record.primary_image,
        "image_urls": list(record.image_urls),
        "video_url": record.video_url,
        "website_url": record.demo_url,
        "roadmap": [item.model_dump(by_alias=True) for item in record.roadmap],
        "team_members": list(record.funding_tiers),  # 沿用旧数据：资助档位存放在 team_members
        "requirements": record.long_description,
        "views": record.views,
        "likes": record.likes,
        "comment_count": record.comments,
        "updated_at": utcnow_iso(),
    }


def row_to_record(row: Dict[str, Any]) -> ProjectRecord:
    """远端行 -> 规范项目，缺失字段补默认值"""
    status = row.get("status") or ProjectStatus.ACTIVE.value
    if status not in _VALID_STATUSES:
        status = ProjectStatus.ACTIVE.value
    team_members = row.get("team_members") or []
    created_at = row.get("created_at") or utcnow_iso()
    return ProjectRecord(
        id=str(row["id"]),
        title=row.get("title") or "Untitled",
        description=row.get("description") or "",
        long_description=row.get("summary") or row.get("description") or "",
        category=row.get("category") or "",
        tags=row.get("tags") or [],
        status=status,
        creator_id=row.get("creator_id"),
        creator_name="Creator",  # 需要联表 users 才能拿到真实名称
        image_urls=row.get("image_urls") or [],
        video_url=row.get("video_url"),
        demo_url=row.get("website_url"),
        deadline=row.get("deadline"),
        roadmap=row.get("roadmap") or [],
        milestones=[],
        funding_tiers=team_members,
        team_size=len(team_members) or 1,
        views=row.get("views") or 0,
        likes=row.get("likes") or 0,
        comments=row.get("comment_count") or 0,
        created_at=created_at,
        updated_at=row.get("updated_at") or created_at,
    )


class RemoteProjectStore:
    """
    远端共享存储适配器。

    所有远端错误都在这里被捕获：写入失败返回 failed 结果，读取失败退回本地缓存内容，
    不会让上层的用户操作失败。后端是同步的，调用放入线程池执行。
    """

    def __init__(self, backend: BaseStoreBackend, local_store: LocalProjectStore):
        self.backend = backend
        self.local_store = local_store

    async def _call(self, fn, *args):
        return await asyncio.to_thread(fn, *args)

    # ------------------------------------------------------------------
    # 写入
    # ------------------------------------------------------------------

    async def upsert_project(self, record: ProjectRecord) -> UpsertOutcome:
        if not is_valid_creator(record.creator_id):
            skipped = InvalidCreator(f"Invalid creator id {record.creator_id!r}, skipping remote save")
            logger.info(str(skipped))
            return UpsertOutcome(status=NOT_ATTEMPTED, message=str(skipped))

        try:
            remote_id = await self._upsert(record)
        except Exception as e:
            error = RemoteSyncFailed(f"Database sync failed: {e}")
            logger.error(f"Remote upsert of project {record.id} failed: {e}")
            return UpsertOutcome(status=FAILED, message=str(error))

        logger.info(f"Project {record.id} synced to remote store as {remote_id}")
        return UpsertOutcome(status=SYNCED, remote_id=remote_id)

    async def _locate(self, record: ProjectRecord) -> Optional[Dict[str, Any]]:
        # 先按跨存储 id，再按（标题, 创建者）兼容旧数据
        existing = await self._call(self.backend.get, record.id)
        if existing:
            return existing
        return await self._call(self.backend.find_by_title_and_creator, record.title, record.creator_id)

    async def _upsert(self, record: ProjectRecord) -> str:
        existing = await self._locate(record)
        if existing:
            return await self._update(existing["id"], record)

        row = record_to_row(record)
        row.update({
            "id": record.id,
            "creator_id": record.creator_id,
            "approval_status": ApprovalStatus.PENDING.value,
            "featured": False,
            "share_count": 0,
            "bookmark_count": 0,
            "created_at": record.created_at,
        })
        try:
            inserted = await self._call(self.backend.insert, row)
        except DuplicateRow:
            # 并发保存抢先插入了同一行，改为更新
            logger.warning(f"Project '{record.title}' was inserted concurrently, retrying as update")
            existing = await self._locate(record)
            if not existing:
                raise
            return await self._update(existing["id"], record)
        return str(inserted["id"])

    async def _update(self, remote_id, record: ProjectRecord) -> str:
        logger.debug(f"Project exists remotely, updating {remote_id}")
        await self._call(self.backend.update, remote_id, record_to_row(record))
        return str(remote_id)

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------

    def _from_local(self, fn, *args, default=None):
        """远端读取失败时退回本地缓存；本地也不可用时返回空结果"""
        try:
            return fn(*args)
        except StorageUnavailable as e:
            logger.warning(f"Local cache unavailable as well: {e}")
            return default

    def _map_rows(self, rows: List[Dict[str, Any]]) -> List[ProjectRecord]:
        projects = []
        for row in rows:
            try:
                projects.append(row_to_record(row))
            except (KeyError, ValidationError) as e:
                logger.warning(f"Skipping malformed remote project row {row.get('id')}: {e}")
        return projects

    async def fetch_all_projects(self) -> List[ProjectRecord]:
        try:
            rows = await self._call(self.backend.select_all)
        except Exception as e:
            logger.warning(str(RemoteFetchFailed(f"Failed to fetch projects from remote store: {e}")))
            return self._from_local(self.local_store.get_all_projects, default=[])
        return self._map_rows(rows)

    async def fetch_projects_by_creator(self, creator_id: str) -> List[ProjectRecord]:
        try:
            rows = await self._call(self.backend.select_by_creator, creator_id)
        except Exception as e:
            logger.warning(str(RemoteFetchFailed(f"Failed to fetch projects of {creator_id}: {e}")))
            return self._from_local(self.local_store.get_projects_by_creator, creator_id, default=[])
        return self._map_rows(rows)

    async def fetch_project(self, project_id: str) -> Optional[ProjectRecord]:
        try:
            row = await self._call(self.backend.get, project_id)
        except Exception as e:
            logger.warning(str(RemoteFetchFailed(f"Failed to fetch project {project_id}: {e}")))
            return self._from_local(self.local_store.get_project_by_id, project_id)
        if not row:
            return None
        mapped = self._map_rows([row])
        return mapped[0] if mapped else None

    async def check_connection(self) -> bool:
        return await self._call(self.backend.ping)
