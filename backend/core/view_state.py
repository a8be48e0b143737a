# backend/core/view_state.py
from collections import defaultdict
from typing import Dict, List

from ..models.schemas import ProjectRecord, ProjectView


class ViewState:
    """
    点赞 / 收藏的临时计数，只存在于进程内存，叠加到列表输出上。
    不会写回本地缓存或远端存储，重启后清零。
    """

    def __init__(self):
        self.likes: Dict[str, int] = defaultdict(int)
        self.bookmarks: Dict[str, int] = defaultdict(int)

    def like(self, project_id: str) -> int:
        self.likes[project_id] += 1
        return self.likes[project_id]

    def bookmark(self, project_id: str) -> int:
        self.bookmarks[project_id] += 1
        return self.bookmarks[project_id]

    def view(self, project: ProjectRecord) -> ProjectView:
        data = project.model_dump()
        data["likes"] = project.likes + self.likes.get(project.id, 0)
        data["bookmarks"] = self.bookmarks.get(project.id, 0)
        return ProjectView.model_validate(data)

    def apply(self, projects: List[ProjectRecord]) -> List[ProjectView]:
        return [self.view(p) for p in projects]

    def reset(self):
        self.likes.clear()
        self.bookmarks.clear()
