# backend/models/project.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, Text, Boolean, Index, UniqueConstraint
from datetime import datetime, timezone
from . import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Project(Base):
    """远端共享存储中的项目行，列名与托管后端的 projects 表一致（snake_case）"""
    __tablename__ = 'projects'

    id = Column(String(64), primary_key=True)  # 跨存储共享的 UUID
    creator_id = Column(String(64), nullable=False)
    title = Column(String(300), nullable=False)
    description = Column(Text, default="")
    summary = Column(String(500), default="")
    category = Column(String(100), default="")
    tags = Column(JSON, default=list)
    deadline = Column(String(40), nullable=True)
    status = Column(String(20), default="active")  # draft, pending, active, completed, cancelled
    approval_status = Column(String(20), default="pending")  # pending, approved, rejected

    # 媒体
    cover_image = Column(String(1000), nullable=True)
    image_urls = Column(JSON, default=list)
    video_url = Column(String(1000), nullable=True)
    website_url = Column(String(1000), nullable=True)
    github_url = Column(String(1000), nullable=True)

    roadmap = Column(JSON, default=list)
    team_members = Column(JSON, default=list)
    requirements = Column(Text, nullable=True)
    featured = Column(Boolean, default=False)

    # 计数
    views = Column(Integer, default=0)
    likes = Column(Integer, default=0)
    comment_count = Column(Integer, default=0)
    share_count = Column(Integer, default=0)
    bookmark_count = Column(Integer, default=0)

    # 审核
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(String(64), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint('title', 'creator_id', name='uq_project_title_creator'),
        Index('idx_project_created', 'created_at'),
        Index('idx_project_creator', 'creator_id'),
    )
