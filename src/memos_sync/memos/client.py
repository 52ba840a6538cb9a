"""
Memos API Client Module

Fetches memos and resources from a Memos server over its REST API.

Two authorization styles are supported:
- access token: ``/api/v1/...`` with ``Authorization: Bearer <token>``
- open id (legacy): ``/api/...?openId=<id>``
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from memos_sync.config import Authorization
from memos_sync.constants import MEMO_ROW_STATUS_ARCHIVED
from memos_sync.core.retry import request_with_retry, retry_on_failure
from memos_sync.errors import RemoteFetchError
from memos_sync.logger import logger
from memos_sync.memos.base import RemoteCapability
from memos_sync.models import RemoteAttachment, RemoteNote, RemoteSnapshot
from memos_sync.utils import parse_remote_time


def derive_title(content: str) -> str:
    """First non-empty line of the memo, without leading heading marks."""
    for line in (content or "").splitlines():
        line = line.strip()
        if line:
            return line.lstrip("#").strip()
    return ""


def memo_to_note(memo: Dict[str, Any]) -> RemoteNote:
    """Map a memo payload (legacy or v1 field names) to a RemoteNote."""
    content = memo.get("content") or ""
    created = memo.get("createdTs", memo.get("createTime"))
    updated = memo.get("updatedTs", memo.get("updateTime"))
    row_status = memo.get("rowStatus") or memo.get("state") or ""
    return RemoteNote(
        id=memo.get("id") or str(memo.get("name", "")).rsplit("/", 1)[-1],
        title=derive_title(content),
        content=content,
        created_at=parse_remote_time(created),
        updated_at=parse_remote_time(updated),
        archived=str(row_status).upper() == MEMO_ROW_STATUS_ARCHIVED,
    )


class MemosClient(RemoteCapability):
    """HTTP client for a Memos server."""

    def __init__(self, authorization: Authorization, session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            authorization: Server URL plus an access token or open id
            session: Optional requests session (shared connection pool)
        """
        self.authorization = authorization
        self.session = session or requests.Session()
        if authorization.access_token:
            self.session.headers["Authorization"] = f"Bearer {authorization.access_token}"

    @property
    def base_url(self) -> str:
        return self.authorization.base_url

    @property
    def api_prefix(self) -> str:
        return "/api/v1" if self.authorization.access_token else "/api"

    def _params(self) -> Dict[str, str]:
        if self.authorization.access_token:
            return {}
        return {"openId": self.authorization.open_id}

    def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}{self.api_prefix}{path}"
        try:
            resp = request_with_retry(self.session, "GET", url, params=self._params())
        except requests.exceptions.RequestException as e:
            raise RemoteFetchError(f"请求 {url} 失败: {e}") from e

        if resp.status_code in (401, 403):
            raise RemoteFetchError(f"鉴权失败 ({resp.status_code})，请检查 Access Token / OpenID")
        if resp.status_code != 200:
            raise RemoteFetchError(f"请求 {url} 返回 HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise RemoteFetchError(f"无法解析 {url} 的响应: {e}") from e

        # Older servers wrap results as {"data": [...]}
        if isinstance(payload, dict) and "data" in payload:
            payload = payload["data"]
        return payload

    def _get_list(self, path: str) -> List[Dict[str, Any]]:
        payload = self._get_json(path)
        if not isinstance(payload, list):
            raise RemoteFetchError(f"{path} 返回的数据不是列表")
        return [item for item in payload if isinstance(item, dict)]

    def list_memos(self) -> List[Dict[str, Any]]:
        return self._get_list("/memo")

    def list_resources(self) -> List[Dict[str, Any]]:
        return self._get_list("/resource")

    @retry_on_failure()
    def _download(self, url: str) -> requests.Response:
        resp = self.session.get(url, params=self._params(), timeout=60)
        resp.raise_for_status()
        return resp

    def download_resource(self, resource: Dict[str, Any]) -> Optional[bytes]:
        """Download one resource's bytes. Returns None on failure."""
        filename = resource.get("filename", "")
        url = f"{self.base_url}/o/r/{resource.get('id')}/{quote(filename)}"
        try:
            return self._download(url).content
        except requests.exceptions.RequestException as e:
            logger.warning(f"资源下载失败，跳过: {filename} ({e})")
            return None

    def fetch_snapshot(self) -> RemoteSnapshot:
        """Fetch every memo and every stored resource."""
        logger.info(f"正在获取 Memos: {self.base_url}", icon="🔍")
        notes = [memo_to_note(m) for m in self.list_memos()]

        files = []
        for resource in self.list_resources():
            filename = resource.get("filename")
            if not filename:
                continue
            if resource.get("externalLink"):
                logger.debug(f"跳过外链资源: {filename}")
                continue
            files.append(RemoteAttachment(
                filename=filename,
                content=self.download_resource(resource),
                note_id=str(resource["memoId"]) if resource.get("memoId") is not None else None,
            ))

        logger.info(f"获取到 {len(notes)} 条 Memo，{len(files)} 个资源", icon="📥")
        return RemoteSnapshot(notes=notes, files=files)
