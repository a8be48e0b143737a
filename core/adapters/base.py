# core/adapters/base.py
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional


class BackendError(Exception):
    """远端存储后端返回的错误（网络、权限、校验等）"""


class DuplicateRow(BackendError):
    """插入违反 (title, creator_id) 唯一约束"""


class BaseStoreBackend(ABC):
    """
    远端 projects 表的最小查询面：按条件查询、插入、按主键更新、按时间排序查询。
    所有方法都是同步的，行以 snake_case 字典表示；调用方负责放入线程池。
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    @abstractmethod
    def find_by_title_and_creator(self, title: str, creator_id: str) -> Optional[Dict[str, Any]]:
        """返回匹配行（至少包含 id），不存在时返回 None"""
        pass

    @abstractmethod
    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """插入一行并返回写入后的行；唯一约束冲突时抛出 DuplicateRow"""
        pass

    @abstractmethod
    def update(self, row_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def select_all(self) -> List[Dict[str, Any]]:
        """按 created_at 降序返回全部行"""
        pass

    @abstractmethod
    def select_by_creator(self, creator_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get(self, row_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def ping(self) -> bool:
        """连接测试，可达时返回 True"""
        pass

    def close(self):
        pass
