# backend/core/errors.py


class CollabError(Exception):
    """项目存储相关错误的基类"""


class StorageUnavailable(CollabError):
    """本地缓存不可写（空间不足、被禁用或 IO 失败），保存操作随之失败"""


class RemoteSyncFailed(CollabError):
    """本地保存成功后远端写入失败，只作为警告返回"""


class RemoteFetchFailed(CollabError):
    """远端读取失败，由本地缓存内容替代，仅记录日志"""


class InvalidCreator(CollabError):
    """创建者缺失或为匿名，跳过远端写入"""
