# frontend/client.py
import os
import requests

BACKEND_URL = os.getenv("COLLAB_BACKEND_URL", "http://localhost:8000")


def parse_list(text):
    """逗号分隔的输入 -> 去空白后的列表"""
    return [t.strip() for t in (text or "").split(",") if t.strip()]


def _identity_headers(user_id, user_name=""):
    headers = {}
    if user_id:
        headers["X-User-Id"] = user_id
    if user_name:
        headers["X-User-Name"] = user_name
    return headers


def load_projects(search="", category="All", status="all", sort="newest", creator_id=None):
    """获取合并后的项目列表"""
    params = {"search": search, "category": category, "status": status, "sort": sort}
    if creator_id:
        params["creator_id"] = creator_id
    try:
        resp = requests.get(f"{BACKEND_URL}/api/projects/", params=params, timeout=30)
        if resp.status_code == 200:
            return resp.json()
        else:
            return [{"error": f"加载失败: {resp.text}"}]
    except Exception as e:
        return [{"error": str(e)}]


def create_project(title, description, long_description, category, tags_str, image_urls_str,
                   demo_url, video_url, deadline, status, user_id, user_name):
    """创建项目：本地一定会保存，远端同步失败时返回警告"""
    payload = {
        "title": title,
        "description": description,
        "longDescription": long_description,
        "category": category,
        "tags": parse_list(tags_str),
        "imageUrls": parse_list(image_urls_str),
        "demoUrl": demo_url or None,
        "videoUrl": video_url or None,
        "deadline": deadline or None,
        "status": status or "active",
        "creatorName": user_name or "",
    }
    try:
        resp = requests.post(
            f"{BACKEND_URL}/api/projects/",
            json=payload,
            headers=_identity_headers(user_id, user_name),
            timeout=60,
        )
    except Exception as e:
        return f"请求异常: {e}"

    if resp.status_code != 201:
        return f"创建失败: {resp.text}"
    result = resp.json()
    project_id = result.get("project", {}).get("id")
    if result.get("warning"):
        return f"项目已保存到本地 (ID: {project_id})，但同步失败: {result['warning']}"
    if result.get("remoteId"):
        return f"项目创建成功，已同步 (ID: {project_id})"
    return f"项目已保存到本地 (ID: {project_id})，登录后保存可同步到共享库"


def like_project(project_id, user_id):
    if not project_id:
        return "请填写项目ID"
    if not user_id:
        return "请先登录再点赞"
    try:
        resp = requests.post(
            f"{BACKEND_URL}/api/projects/{project_id}/like",
            headers=_identity_headers(user_id),
            timeout=30,
        )
        if resp.status_code == 200:
            return f"👍 已点赞，当前点赞数: {resp.json().get('likes')}"
        else:
            return f"点赞失败: {resp.text}"
    except Exception as e:
        return f"请求异常: {e}"


def bookmark_project(project_id):
    if not project_id:
        return "请填写项目ID"
    try:
        resp = requests.post(f"{BACKEND_URL}/api/projects/{project_id}/bookmark", timeout=30)
        if resp.status_code == 200:
            return f"已收藏，收藏数: {resp.json().get('bookmarks')}"
        else:
            return f"收藏失败: {resp.text}"
    except Exception as e:
        return f"请求异常: {e}"


def check_health():
    try:
        resp = requests.get(f"{BACKEND_URL}/api/health", timeout=10)
        if resp.status_code != 200:
            return f"❌ 后端异常: {resp.text}"
        if resp.json().get("remote"):
            return "✅ 后端与共享存储均可用"
        return "⚠️ 共享存储不可达，当前使用本地缓存"
    except Exception as e:
        return f"❌ 无法连接后端: {e}"
