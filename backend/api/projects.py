# backend/api/projects.py
from fastapi import APIRouter, Depends, HTTPException, Header, Query
from typing import List, Optional

from ..core.listing import ListingQuery, filter_and_sort
from ..core.project_sync import ProjectSyncService, build_sync_service
from ..core.session import SessionContext
from ..core.view_state import ViewState
from ..models.schemas import ProjectInput, ProjectView, SaveResult

router = APIRouter(prefix="/api/projects", tags=["projects"])

# 进程内共享：同步服务在首次请求时创建，点赞 / 收藏计数只存在内存
_sync_service: Optional[ProjectSyncService] = None
view_state = ViewState()


# 依赖
def get_sync_service() -> ProjectSyncService:
    global _sync_service
    if _sync_service is None:
        _sync_service = build_sync_service()
    return _sync_service


def get_view_state() -> ViewState:
    return view_state


def get_session(
    x_user_id: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> SessionContext:
    """身份由上游身份提供方校验后通过请求头传入"""
    return SessionContext.from_headers(x_user_id, x_user_name)


@router.post("/", response_model=SaveResult, status_code=201)
async def create_project(
    project: ProjectInput,
    service: ProjectSyncService = Depends(get_sync_service),
    session: SessionContext = Depends(get_session),
):
    result = await service.save(project, session=session)
    if not result.success:
        raise HTTPException(status_code=507, detail=result.error or "Failed to save project")
    return result


@router.get("/", response_model=List[ProjectView])
async def list_projects(
    search: str = "",
    category: str = "All",
    status: str = "all",
    sort: str = "newest",
    team_size_min: int = Query(1, ge=0),
    team_size_max: int = Query(50, ge=1),
    creator_id: Optional[str] = None,
    service: ProjectSyncService = Depends(get_sync_service),
    state: ViewState = Depends(get_view_state),
):
    if creator_id:
        projects = await service.load_by_creator(creator_id)
    else:
        projects = await service.load_all()
    query = ListingQuery(
        search=search,
        category=category,
        status=status,
        sort=sort,
        team_size_min=team_size_min,
        team_size_max=team_size_max,
    )
    try:
        return filter_and_sort(state.apply(projects), query)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{project_id}", response_model=ProjectView)
async def get_project(
    project_id: str,
    service: ProjectSyncService = Depends(get_sync_service),
    state: ViewState = Depends(get_view_state),
):
    project = await service.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    return state.view(project)


@router.post("/{project_id}/like")
async def like_project(
    project_id: str,
    service: ProjectSyncService = Depends(get_sync_service),
    state: ViewState = Depends(get_view_state),
    session: SessionContext = Depends(get_session),
):
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Please log in to like projects")
    project = await service.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    state.like(project_id)
    return {"id": project_id, "likes": state.view(project).likes}


@router.post("/{project_id}/bookmark")
async def bookmark_project(
    project_id: str,
    service: ProjectSyncService = Depends(get_sync_service),
    state: ViewState = Depends(get_view_state),
):
    project = await service.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    return {"id": project_id, "bookmarks": state.bookmark(project_id)}
