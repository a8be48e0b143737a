# backend/app.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware

from .api import projects
from .api.projects import get_sync_service
from .config import get_settings
from .core.project_sync import ProjectSyncService

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    # 启动时初始化数据库（sql 后端直接使用本地表）
    if settings.remote_backend == "sql":
        from .db import init_db
        init_db()
        logger.info("数据库初始化完成")
    yield
    logger.info("应用关闭")


app = FastAPI(title="CollabHub API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,  # 允许前端地址
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(projects.router)


@app.get("/api/health")
async def health(service: ProjectSyncService = Depends(get_sync_service)):
    """连接测试：远端不可达时服务仍然可用（本地优先）"""
    try:
        remote_ok = await service.remote_store.check_connection()
    except Exception as e:
        logger.error(f"Remote connection check failed: {e}")
        remote_ok = False
    return {"status": "ok", "remote": remote_ok}
