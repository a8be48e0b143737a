# backend/core/listing.py
from datetime import datetime, timezone
from typing import List, Optional, TypeVar

from pydantic import BaseModel

from core.utils import parse_timestamp
from ..models.schemas import ProjectRecord, ProjectStatus

PROJECT_CATEGORIES = [
    'All', 'Technology', 'Healthcare', 'Education', 'Environment', 'Gaming',
    'AI/ML', 'Blockchain', 'IoT', 'Mobile App', 'Web Development',
    'Hardware', 'Research', 'Social Impact', 'Entertainment', 'Other'
]

SORT_OPTIONS = {
    "newest": "Newest First",
    "oldest": "Oldest First",
    "popular": "Most Popular",
    "deadline": "Deadline Soon",
    "team-size": "Team Size",
}

STATUS_FILTERS = ["all"] + [s.value for s in ProjectStatus]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)
_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)

P = TypeVar("P", bound=ProjectRecord)


class ListingQuery(BaseModel):
    search: str = ""
    category: str = "All"
    status: str = "all"
    sort: str = "newest"
    team_size_min: int = 1
    team_size_max: int = 50


def _matches_search(project: ProjectRecord, query: str) -> bool:
    return (
        query in project.title.lower()
        or query in project.description.lower()
        or any(query in tag.lower() for tag in project.tags)
        or query in project.creator_name.lower()
    )


def filter_projects(projects: List[P], query: ListingQuery) -> List[P]:
    filtered = list(projects)

    search = query.search.strip().lower()
    if search:
        filtered = [p for p in filtered if _matches_search(p, search)]

    if query.category and query.category != "All":
        filtered = [p for p in filtered if p.category == query.category]

    if query.status and query.status != "all":
        filtered = [p for p in filtered if p.status.value == query.status]

    return [p for p in filtered if query.team_size_min <= p.team_size <= query.team_size_max]


def sort_projects(projects: List[P], sort: str = "newest") -> List[P]:
    if sort not in SORT_OPTIONS:
        raise ValueError(f"Unsupported sort option: {sort}")

    def created(p):
        return parse_timestamp(p.created_at) or _EPOCH

    if sort == "newest":
        return sorted(projects, key=created, reverse=True)
    if sort == "oldest":
        return sorted(projects, key=created)
    if sort == "popular":
        return sorted(projects, key=lambda p: p.likes, reverse=True)
    if sort == "deadline":
        # 没有截止日期的排在最后
        return sorted(projects, key=lambda p: parse_timestamp(p.deadline) or _FAR_FUTURE)
    return sorted(projects, key=lambda p: p.team_size, reverse=True)


def filter_and_sort(projects: List[P], query: Optional[ListingQuery] = None) -> List[P]:
    query = query or ListingQuery()
    return sort_projects(filter_projects(projects, query), query.sort)
