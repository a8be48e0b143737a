import uuid
import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)

# 匿名用户占位符，远端不会为它写入数据
ANONYMOUS_CREATOR = "anonymous"

# 远端 summary 字段的最大长度
SUMMARY_MAX_LENGTH = 500


def utcnow_iso() -> str:
    """当前 UTC 时间的 ISO 8601 字符串（毫秒精度，以 Z 结尾）"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value) -> Optional[datetime]:
    """
    宽松解析时间戳：支持 datetime、ISO 字符串（含 Z 后缀）。
    无法解析时返回 None，由调用方决定排序位置。
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(value) -> Optional[str]:
    """把数据库返回的 datetime 或字符串统一为 ISO 字符串"""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return str(value)


def generate_project_id() -> str:
    """跨存储共享的项目 ID，创建时在客户端生成"""
    return str(uuid.uuid4())


def normalize_title(title: Optional[str]) -> str:
    """标题比较键：去掉首尾空白并忽略大小写"""
    return (title or "").strip().casefold()


def is_valid_creator(creator_id: Optional[str]) -> bool:
    return bool(creator_id) and creator_id.strip() != "" and creator_id != ANONYMOUS_CREATOR


def truncate(text: Optional[str], limit: int = SUMMARY_MAX_LENGTH) -> str:
    return (text or "")[:limit]
