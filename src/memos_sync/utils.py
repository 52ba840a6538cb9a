import time
from datetime import datetime
from typing import Any, List, Optional


def parse_remote_time(value: Any) -> Optional[int]:
    """
    Normalize a remote timestamp to epoch seconds.

    Accepts integers, digit strings (seconds or milliseconds, using the same
    heuristic for both) and RFC3339 strings such as ``2023-11-14T22:13:20Z``.
    Returns None for missing or unparseable values.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        ts = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        ts = int(value.strip())
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return int(datetime.fromisoformat(text).timestamp())
        except ValueError:
            return None
    else:
        return None

    if ts > 10000000000:
        return ts // 1000
    return ts


def format_timestamp_name(timestamp: Optional[int], now: Optional[float] = None) -> str:
    """
    Format epoch seconds as ``YYYY-M-D-H-MM`` in local time.

    No component is zero padded: 2023-01-05 09:07 becomes ``2023-1-5-9-7``.
    A missing timestamp falls back to ``now`` (current time by default).
    """
    if timestamp is None:
        timestamp = time.time() if now is None else now
    d = datetime.fromtimestamp(timestamp)
    return f"{d.year}-{d.month}-{d.day}-{d.hour}-{d.minute}"


def ancestor_dirs(path: str) -> List[str]:
    """
    Return the ancestor directories of a relative path, root first.

    ``resources/sub/dir/pic.png`` -> ``['resources', 'resources/sub', 'resources/sub/dir']``
    """
    parts = [p for p in path.split("/") if p][:-1]
    return ["/".join(parts[:i]) for i in range(1, len(parts) + 1)]


def join_path(*parts: str) -> str:
    """Join vault-relative path segments with forward slashes."""
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)
