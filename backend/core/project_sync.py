# backend/core/project_sync.py
import logging
from typing import List, Optional, Union

from core.utils import normalize_title
from ..models.schemas import ProjectInput, ProjectRecord, SaveResult
from .errors import StorageUnavailable
from .local_store import LocalProjectStore
from .remote_store import RemoteProjectStore, SYNCED, FAILED
from .session import SessionContext

logger = logging.getLogger(__name__)


def merge_projects(remote: List[ProjectRecord], local: List[ProjectRecord]) -> List[ProjectRecord]:
    """
    合并远端与本地结果：远端记录按获取顺序在前，本地记录只有在远端没有同 id、
    也没有同名（忽略大小写）记录时才追加到末尾。
    """
    remote_ids = {p.id for p in remote}
    remote_titles = {normalize_title(p.title) for p in remote}
    merged = list(remote)
    for project in local:
        if project.id in remote_ids or normalize_title(project.title) in remote_titles:
            continue
        merged.append(project)
    return merged


class ProjectSyncService:
    """先写本地缓存，再尽力同步到远端；读取时合并两边的数据"""

    def __init__(self, local_store: LocalProjectStore, remote_store: RemoteProjectStore):
        self.local_store = local_store
        self.remote_store = remote_store

    async def save(self, data: Union[ProjectInput, dict], session: Optional[SessionContext] = None) -> SaveResult:
        if isinstance(data, dict):
            data = ProjectInput.model_validate(data)
        if not data.creator_id and session is not None:
            data = data.model_copy(update={
                "creator_id": session.creator_id,
                "creator_name": data.creator_name or session.display_name,
            })

        # 第一步：本地缓存，失败即整体失败
        try:
            record = self.local_store.save_project(data)
        except StorageUnavailable as e:
            logger.error(f"Project save failed, local storage unavailable: {e}")
            return SaveResult(success=False, error=str(e))
        logger.info(f"Project saved locally: {record.id} ({record.title})")

        # 第二步：远端同步，失败只返回警告
        outcome = await self.remote_store.upsert_project(record)
        if outcome.status == SYNCED:
            return SaveResult(success=True, project=record, remote_id=outcome.remote_id)
        if outcome.status == FAILED:
            logger.warning(f"Project {record.id} saved locally but remote sync failed")
            return SaveResult(success=True, project=record, warning=outcome.message)
        return SaveResult(success=True, project=record)

    def _local_projects(self, creator_id: Optional[str] = None) -> List[ProjectRecord]:
        try:
            if creator_id:
                return self.local_store.get_projects_by_creator(creator_id)
            return self.local_store.get_all_projects()
        except StorageUnavailable as e:
            logger.warning(f"Local cache unavailable while loading projects: {e}")
            return []

    async def load_all(self) -> List[ProjectRecord]:
        remote = await self.remote_store.fetch_all_projects()
        local = self._local_projects()
        merged = merge_projects(remote, local)
        logger.debug(f"Loaded {len(remote)} remote + {len(merged) - len(remote)} local-only projects")
        return merged

    async def load_by_creator(self, creator_id: str) -> List[ProjectRecord]:
        remote = await self.remote_store.fetch_projects_by_creator(creator_id)
        return merge_projects(remote, self._local_projects(creator_id))

    async def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        project = await self.remote_store.fetch_project(project_id)
        if project is not None:
            return project
        try:
            return self.local_store.get_project_by_id(project_id)
        except StorageUnavailable as e:
            logger.warning(f"Local cache unavailable while looking up {project_id}: {e}")
            return None


def build_sync_service(settings=None) -> ProjectSyncService:
    """按配置组装本地缓存、远端后端和同步服务"""
    from core.adapters.factory import StoreBackendFactory
    from ..config import get_settings
    from .local_store import LocalStorage

    settings = settings or get_settings()
    storage = LocalStorage(
        settings.data_dir,
        namespace=settings.local_namespace,
        quota_bytes=settings.local_quota_bytes,
    )
    local_store = LocalProjectStore(storage)
    backend = StoreBackendFactory.get_backend(settings.remote_backend, settings.backend_config())
    logger.info(f"Project sync service using '{settings.remote_backend}' remote backend")
    return ProjectSyncService(local_store, RemoteProjectStore(backend, local_store))
