import json
import os
from typing import Any, Dict, Optional
from urllib.parse import urlparse, parse_qs

import keyring
from keyring.errors import KeyringError

from memos_sync.constants import (
    DEFAULT_FILE_NAME_FORMAT,
    DEFAULT_FOLDER_TO_SYNC,
    DEFAULT_INTERVAL,
    VALID_INTERVALS,
    FilenameFormat,
)
from memos_sync.errors import ConfigurationError
from memos_sync.logger import logger

SETTINGS_FILE = "memos_sync.json"
KEYRING_SERVICE = "memos-sync"

# ============================================================
# Application Constants
# ============================================================
# Maximum workers for parallel writes/deletes
MAX_PARALLEL_WORKERS: int = 4

# API retry settings
API_MAX_RETRIES: int = 3
API_RETRY_BASE_DELAY: float = 1.0

# Per-request HTTP timeout (seconds)
REQUEST_TIMEOUT: float = 30.0

# Upper bound for a whole remote fetch (seconds)
FETCH_TIMEOUT: float = 300.0


# ============================================================
# Settings
# ============================================================
def _string_field(data: Dict[str, Any], key: str) -> str:
    """A string setting, or "" (with a warning) when it has another type."""
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value or ""
    logger.warning(f"配置项 '{key}' 应为字符串，已忽略: {value!r}")
    return ""


class Authorization:
    """Credentials for the Memos server."""

    def __init__(self, base_url: str = "", access_token: str = "", open_id: str = ""):
        self.base_url = (base_url or "").rstrip("/")
        self.access_token = access_token or ""
        self.open_id = open_id or ""

    @classmethod
    def from_open_api(cls, open_api: str) -> "Authorization":
        """Convert the legacy ``https://host/api/memo?openId=XYZ`` key."""
        parsed = urlparse(open_api)
        open_id = parse_qs(parsed.query).get("openId", [""])[0]
        base_url = f"{parsed.scheme}://{parsed.netloc}" if parsed.netloc else ""
        return cls(base_url=base_url, open_id=open_id)

    def to_dict(self) -> Dict[str, str]:
        data = {"baseUrl": self.base_url}
        if self.access_token:
            data["accessToken"] = self.access_token
        if self.open_id:
            data["openId"] = self.open_id
        return data


class SyncSettings:
    """
    Persisted plugin settings.

    Built once per sync invocation by ``SettingsStore.load`` and passed
    down explicitly; nothing below the runner reads settings on its own.
    """

    def __init__(self, authorization: Optional[Authorization] = None,
                 folder_to_sync: str = DEFAULT_FOLDER_TO_SYNC,
                 file_name_format: FilenameFormat = DEFAULT_FILE_NAME_FORMAT,
                 interval: int = DEFAULT_INTERVAL,
                 last_sync_time: Optional[int] = None):
        self.authorization = authorization or Authorization()
        self.folder_to_sync = folder_to_sync
        self.file_name_format = FilenameFormat(file_name_format)
        self.interval = interval
        self.last_sync_time = last_sync_time

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SyncSettings":
        """Merge persisted data over the defaults. Never raises on bad input."""
        settings = cls()
        if not isinstance(data, dict):
            return settings

        auth = data.get("authorization")
        if isinstance(auth, dict):
            settings.authorization = Authorization(
                base_url=_string_field(auth, "baseUrl"),
                access_token=_string_field(auth, "accessToken"),
                open_id=_string_field(auth, "openId"),
            )
        elif _string_field(data, "openAPI"):
            settings.authorization = Authorization.from_open_api(data["openAPI"])

        folder = data.get("folderToSync")
        if isinstance(folder, str):
            settings.folder_to_sync = folder

        fmt = data.get("fileNameFormat")
        if fmt is not None:
            try:
                settings.file_name_format = FilenameFormat(fmt)
            except (ValueError, TypeError):
                logger.warning(f"未知的文件名格式 '{fmt}'，使用默认值 '{DEFAULT_FILE_NAME_FORMAT.value}'")

        interval = data.get("interval")
        if interval is not None:
            if interval in VALID_INTERVALS and not isinstance(interval, bool):
                settings.interval = int(interval)
            else:
                logger.warning(f"无效的同步间隔 '{interval}'，使用默认值 {DEFAULT_INTERVAL}")

        last_sync = data.get("lastSyncTime")
        if isinstance(last_sync, (int, float)) and not isinstance(last_sync, bool):
            settings.last_sync_time = int(last_sync)

        return settings

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "authorization": self.authorization.to_dict(),
            "folderToSync": self.folder_to_sync,
            "fileNameFormat": self.file_name_format.value,
            "interval": self.interval,
        }
        if self.last_sync_time is not None:
            data["lastSyncTime"] = self.last_sync_time
        return data

    def validate(self) -> None:
        """Raise ConfigurationError if a sync cannot start with these settings."""
        if not self.authorization.base_url:
            raise ConfigurationError("请先配置 Memos 服务器地址 (baseUrl)")
        if not (self.authorization.access_token or self.authorization.open_id):
            raise ConfigurationError("请先配置 Access Token 或 OpenID")
        if not self.folder_to_sync or not self.folder_to_sync.strip():
            raise ConfigurationError("同步目录名不能为空")


def apply_env_overrides(settings: SyncSettings) -> SyncSettings:
    """Let MEMOS_BASE_URL / MEMOS_ACCESS_TOKEN / MEMOS_OPEN_ID override the file."""
    auth = settings.authorization
    auth.base_url = (os.getenv("MEMOS_BASE_URL") or auth.base_url).rstrip("/")
    auth.access_token = os.getenv("MEMOS_ACCESS_TOKEN") or auth.access_token
    auth.open_id = os.getenv("MEMOS_OPEN_ID") or auth.open_id
    return settings


# ============================================================
# Persistence (JSON + keyring)
# ============================================================
class SettingsStore:
    """
    Loads and saves ``SyncSettings`` as JSON.

    The access token goes to the OS keyring when one is usable and only
    falls back to the JSON file otherwise.
    """

    def __init__(self, path: str = SETTINGS_FILE, use_keyring: bool = True):
        self.path = os.path.abspath(path)
        self.use_keyring = use_keyring

    def _keyring_key(self) -> str:
        return f"access_token:{self.path}"

    def _load_token_from_keyring(self) -> Optional[str]:
        if not self.use_keyring:
            return None
        try:
            return keyring.get_password(KEYRING_SERVICE, self._keyring_key())
        except KeyringError as e:
            logger.debug(f"读取 keyring 失败: {e}")
            return None

    def _save_token_to_keyring(self, token: str) -> bool:
        if not self.use_keyring or not token:
            return False
        try:
            keyring.set_password(KEYRING_SERVICE, self._keyring_key(), token)
            return True
        except KeyringError as e:
            logger.debug(f"写入 keyring 失败: {e}")
            return False

    def _read_raw(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"配置文件 JSON 格式错误: {e}")
            return {}
        except OSError as e:
            logger.warning(f"读取配置文件失败: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> SyncSettings:
        """Load settings merged over defaults. Missing or broken files yield defaults."""
        settings = SyncSettings.from_dict(self._read_raw())
        token = self._load_token_from_keyring()
        if token:
            settings.authorization.access_token = token
        return settings

    def save(self, settings: SyncSettings) -> None:
        data = settings.to_dict()
        token = settings.authorization.access_token
        if token and self._save_token_to_keyring(token):
            data["authorization"].pop("accessToken", None)

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def save_watermark(self, last_sync_time: int) -> None:
        """Persist only the watermark, keeping every other field as stored."""
        settings = self.load()
        settings.last_sync_time = last_sync_time
        self.save(settings)
