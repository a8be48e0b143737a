# backend/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
import os

# 导入 models 包（会执行 __init__.py，注册所有模型）
from . import models
from .config import get_settings


def make_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # 远端调用放在线程池里执行
    return create_engine(database_url, connect_args=connect_args)


engine = make_engine(get_settings().database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    os.makedirs(get_settings().data_dir, exist_ok=True)
    # 使用 models.Base 创建所有表
    models.Base.metadata.create_all(bind=bind or engine)
