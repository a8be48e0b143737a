# core/adapters/postgrest.py
import logging
from typing import Dict, Any, List, Optional

import httpx

from .base import BaseStoreBackend, BackendError, DuplicateRow
from .factory import StoreBackendFactory

logger = logging.getLogger(__name__)

# Postgres 唯一约束冲突的错误码
UNIQUE_VIOLATION = "23505"


@StoreBackendFactory.register("postgrest")
class PostgRESTStoreBackend(BaseStoreBackend):
    """托管后端（Supabase 等）的 REST 接口：{url}/rest/v1/projects"""
    backend_name = "postgrest"

    def __init__(self, config=None):
        super().__init__(config)
        base_url = self.config.get("url")
        if not base_url:
            raise ValueError("postgrest backend requires 'url'")
        api_key = self.config.get("api_key") or ""
        # 身份提供方签发的访问令牌，缺省时用匿名 key
        token = self.config.get("access_token") or api_key
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.table_path = f"/rest/v1/{self.config.get('table', 'projects')}"
        self.client = httpx.Client(
            base_url=base_url.rstrip('/'),
            headers=headers,
            timeout=self.config.get("timeout", 10.0),
            transport=self.config.get("transport"),
        )

    def _request(self, method: str, params=None, json=None, prefer: Optional[str] = None) -> Any:
        headers = {"Prefer": prefer} if prefer else None
        try:
            resp = self.client.request(method, self.table_path, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise BackendError(f"Request error: {e}") from e

        if resp.status_code >= 400:
            try:
                detail = resp.json()
            except ValueError:
                detail = {"message": resp.text}
            code = detail.get("code") if isinstance(detail, dict) else None
            message = detail.get("message", resp.text) if isinstance(detail, dict) else resp.text
            if resp.status_code == 409 or code == UNIQUE_VIOLATION:
                raise DuplicateRow(f"Duplicate project row: {message}")
            raise BackendError(f"HTTP {resp.status_code}: {message}")

        if not resp.content:
            return []
        return resp.json()

    def find_by_title_and_creator(self, title: str, creator_id: str) -> Optional[Dict[str, Any]]:
        rows = self._request("GET", params={
            "select": "id,title,creator_id,created_at",
            "title": f"eq.{title}",
            "creator_id": f"eq.{creator_id}",
            "limit": 1,
        })
        return rows[0] if rows else None

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._request("POST", json=row, prefer="return=representation")
        if not rows:
            raise BackendError("No data returned from insert")
        return rows[0]

    def update(self, row_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._request(
            "PATCH",
            params={"id": f"eq.{row_id}"},
            json=changes,
            prefer="return=representation",
        )
        if not rows:
            raise BackendError(f"Project row not found: {row_id}")
        return rows[0]

    def select_all(self) -> List[Dict[str, Any]]:
        return self._request("GET", params={"select": "*", "order": "created_at.desc"})

    def select_by_creator(self, creator_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", params={
            "select": "*",
            "creator_id": f"eq.{creator_id}",
            "order": "created_at.desc",
        })

    def get(self, row_id: str) -> Optional[Dict[str, Any]]:
        rows = self._request("GET", params={"select": "*", "id": f"eq.{row_id}", "limit": 1})
        return rows[0] if rows else None

    def ping(self) -> bool:
        try:
            self._request("GET", params={"select": "id", "limit": 1})
            return True
        except BackendError as e:
            logger.error(f"Remote store connection failed: {e}")
            return False

    def close(self):
        self.client.close()
