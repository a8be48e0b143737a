# backend/core/local_store.py
import os
import json
import logging
import tempfile
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from core.utils import utcnow_iso, generate_project_id, normalize_title
from ..models.schemas import ProjectInput, ProjectRecord
from .errors import StorageUnavailable

logger = logging.getLogger(__name__)

# 整个项目集合保存在同一个键下
PROJECTS_KEY = "projects"


class LocalStorage:
    """
    设备本地的持久化键值存储，每个命名空间对应一个 JSON 文件，值是序列化后的 JSON 字符串。
    每次写入都会落盘后才返回（临时文件 + fsync + 原子替换），不做写缓冲。
    """

    def __init__(self, data_dir: str, namespace: str = "collabhub", quota_bytes: int = 0, enabled: bool = True):
        self.data_dir = data_dir
        self.namespace = namespace
        self.quota_bytes = quota_bytes
        self.enabled = enabled
        self.path = os.path.join(data_dir, f"{namespace}.localstorage.json")

    def _read(self) -> Dict[str, str]:
        if not self.enabled:
            raise StorageUnavailable("Local storage is disabled")
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Local storage file {self.path} is corrupt, treating as empty: {e}")
            return {}
        except OSError as e:
            raise StorageUnavailable(f"Cannot read local storage: {e}") from e
        if not isinstance(data, dict):
            logger.error(f"Local storage file {self.path} is not an object, treating as empty")
            return {}
        return data

    def _write(self, data: Dict[str, str]):
        if not self.enabled:
            raise StorageUnavailable("Local storage is disabled")
        payload = json.dumps(data, ensure_ascii=False)
        if self.quota_bytes and len(payload.encode("utf-8")) > self.quota_bytes:
            raise StorageUnavailable(
                f"Local storage quota exceeded ({len(payload.encode('utf-8'))} > {self.quota_bytes} bytes)"
            )
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{self.namespace}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise StorageUnavailable(f"Cannot write local storage: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str):
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> List[str]:
        return list(self._read().keys())

    def clear(self):
        self._write({})


class LocalProjectStore:
    """本地项目缓存：远端不可达时的数据来源"""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def _load(self) -> List[ProjectRecord]:
        raw = self.storage.get_item(PROJECTS_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Cached project list is corrupt, ignoring it: {e}")
            return []
        projects = []
        for item in items if isinstance(items, list) else []:
            try:
                projects.append(ProjectRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid cached project {item.get('id') if isinstance(item, dict) else item!r}: {e}")
        return projects

    def _store(self, projects: List[ProjectRecord]):
        self.storage.set_item(PROJECTS_KEY, json.dumps([p.to_storage() for p in projects], ensure_ascii=False))

    def _find_index(self, projects: List[ProjectRecord], data: ProjectInput) -> int:
        # 先按 id，再按（标题, 创建者）
        if data.id:
            for i, p in enumerate(projects):
                if p.id == data.id:
                    return i
        key = normalize_title(data.title)
        for i, p in enumerate(projects):
            if normalize_title(p.title) == key and p.creator_id == data.creator_id:
                return i
        return -1

    def save_project(self, data: Union[ProjectInput, dict]) -> ProjectRecord:
        """写入本地缓存并返回存储后的记录；存储不可用时抛出 StorageUnavailable"""
        if isinstance(data, dict):
            data = ProjectInput.model_validate(data)

        projects = self._load()
        now = utcnow_iso()
        fields = data.model_dump(exclude={"id"})
        index = self._find_index(projects, data)

        if index >= 0:
            # 保留 id、created_at 和计数，其余字段以本次输入为准
            merged = projects[index].model_dump()
            merged.update(fields)
            merged["updated_at"] = now
            record = ProjectRecord.model_validate(merged)
            projects[index] = record
            logger.debug(f"Updated cached project {record.id}")
        else:
            record = ProjectRecord(
                **fields,
                id=data.id or generate_project_id(),
                created_at=now,
                updated_at=now,
            )
            projects.append(record)
            logger.debug(f"Cached new project {record.id}")

        self._store(projects)
        return record

    def get_all_projects(self) -> List[ProjectRecord]:
        return self._load()

    def get_project_by_id(self, project_id: str) -> Optional[ProjectRecord]:
        for p in self._load():
            if p.id == project_id:
                return p
        return None

    def get_projects_by_creator(self, creator_id: str) -> List[ProjectRecord]:
        return [p for p in self._load() if p.creator_id == creator_id]

    def delete_project(self, project_id: str) -> bool:
        projects = self._load()
        remaining = [p for p in projects if p.id != project_id]
        if len(remaining) == len(projects):
            return False
        self._store(remaining)
        return True

