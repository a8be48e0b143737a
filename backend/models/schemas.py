# backend/models/schemas.py
from enum import Enum
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ---------- 路线图 / 里程碑 ----------
class RoadmapItem(BaseModel):
    title: str = ""
    description: str = ""
    due_date: Optional[str] = Field(None, alias="dueDate")
    completed: bool = False

    class Config:
        populate_by_name = True
        extra = "allow"  # 前端可能附带额外字段，原样保留


# ---------- 项目公共字段 ----------
class ProjectBase(BaseModel):
    title: str
    description: str = ""
    long_description: str = Field("", alias="longDescription")
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    status: ProjectStatus = ProjectStatus.ACTIVE
    creator_id: Optional[str] = Field(None, alias="creatorId")
    creator_name: str = Field("", alias="creatorName")
    image_urls: List[str] = Field(default_factory=list, alias="imageUrls")
    video_url: Optional[str] = Field(None, alias="videoUrl")
    demo_url: Optional[str] = Field(None, alias="demoUrl")
    deadline: Optional[str] = None
    roadmap: List[RoadmapItem] = Field(default_factory=list)
    milestones: List[RoadmapItem] = Field(default_factory=list)
    funding_tiers: List[Dict[str, Any]] = Field(default_factory=list, alias="fundingTiers")
    team_size: int = Field(1, alias="teamSize")

    class Config:
        populate_by_name = True

    @field_validator('title')
    @classmethod
    def title_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError('project title cannot be empty')
        return v.strip()

    @field_validator('tags', 'image_urls', 'roadmap', 'milestones', 'funding_tiers', mode='before')
    @classmethod
    def none_to_empty_list(cls, v):
        return v if v is not None else []

    @field_validator('description', 'long_description', 'category', 'creator_name', mode='before')
    @classmethod
    def none_to_empty_str(cls, v):
        return v if v is not None else ""

    @field_validator('team_size', mode='before')
    @classmethod
    def validate_team_size(cls, v):
        return v if v else 1

    @property
    def primary_image(self) -> Optional[str]:
        return self.image_urls[0] if self.image_urls else None


class ProjectInput(ProjectBase):
    """保存请求：id 可选（显式更新时提供），时间戳和计数由存储层维护"""
    id: Optional[str] = None


class ProjectRecord(ProjectBase):
    id: str
    views: int = 0
    likes: int = 0
    comments: int = 0
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    # 把 None 转为 0，远端行的计数列可能为空
    @field_validator('views', 'likes', 'comments', mode='before')
    @classmethod
    def none_to_zero(cls, v):
        return v if v is not None else 0

    def to_storage(self) -> Dict[str, Any]:
        """本地缓存使用的 JSON 形状（camelCase）"""
        return self.model_dump(by_alias=True, mode="json")


class SaveResult(BaseModel):
    success: bool
    project: Optional[ProjectRecord] = None
    remote_id: Optional[str] = Field(None, alias="remoteId")
    warning: Optional[str] = None
    error: Optional[str] = None

    class Config:
        populate_by_name = True


class ProjectView(ProjectRecord):
    """列表输出：在持久化记录上叠加临时的点赞 / 收藏计数"""
    bookmarks: int = 0
