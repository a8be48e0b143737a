# backend/config.py
import os
from dataclasses import dataclass, field
from typing import List, Optional


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class Settings:
    data_dir: str = "./data"
    database_url: str = "sqlite:///./data/collabhub.db"
    remote_backend: str = "sql"  # sql, postgrest
    remote_url: Optional[str] = None
    remote_key: Optional[str] = None
    remote_timeout: float = 10.0
    local_namespace: str = "collabhub"
    local_quota_bytes: int = 5 * 1024 * 1024  # 与浏览器 localStorage 的常见上限一致，0 表示不限
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:7860"])

    @classmethod
    def from_env(cls) -> "Settings":
        data_dir = os.getenv("COLLAB_DATA_DIR", "./data")
        origins = os.getenv("COLLAB_CORS_ORIGINS")
        return cls(
            data_dir=data_dir,
            database_url=os.getenv("COLLAB_DATABASE_URL", f"sqlite:///{data_dir}/collabhub.db"),
            remote_backend=os.getenv("COLLAB_REMOTE_BACKEND", "sql"),
            remote_url=os.getenv("COLLAB_REMOTE_URL"),
            remote_key=os.getenv("COLLAB_REMOTE_KEY"),
            remote_timeout=float(os.getenv("COLLAB_REMOTE_TIMEOUT", "10")),
            local_namespace=os.getenv("COLLAB_LOCAL_NAMESPACE", "collabhub"),
            local_quota_bytes=_int_env("COLLAB_LOCAL_QUOTA_BYTES", 5 * 1024 * 1024),
            log_level=os.getenv("COLLAB_LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else ["http://localhost:7860"],
        )

    def backend_config(self) -> dict:
        """传给远端存储后端工厂的配置"""
        return {
            "url": self.remote_url,
            "api_key": self.remote_key,
            "timeout": self.remote_timeout,
        }


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings():
    """测试用：清除缓存，下次重新读取环境变量"""
    global _settings
    _settings = None
