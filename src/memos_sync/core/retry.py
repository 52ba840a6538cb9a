"""
HTTP retry helpers for the Memos client.

Both helpers back off exponentially (``base_delay * 2 ** attempt``); the
sleep function is injectable so tests never wait.
"""

import time
from functools import wraps
from typing import Callable, Optional, Tuple, Type, TypeVar

import requests

from memos_sync.config import API_MAX_RETRIES, API_RETRY_BASE_DELAY, REQUEST_TIMEOUT
from memos_sync.constants import RETRYABLE_STATUS_CODES
from memos_sync.logger import logger

T = TypeVar('T')
Sleep = Callable[[float], None]


def backoff_delay(attempt: int, base_delay: float, retry_after: Optional[str] = None) -> float:
    """Delay before retry number ``attempt + 1``; a numeric Retry-After can only lengthen it."""
    delay = base_delay * (2 ** attempt)
    if retry_after:
        try:
            delay = max(delay, float(retry_after))
        except ValueError:
            pass
    return delay


def _pause(sleep: Optional[Sleep], delay: float):
    (sleep or time.sleep)(delay)


def retry_on_failure(
    max_retries: int = API_MAX_RETRIES,
    base_delay: float = API_RETRY_BASE_DELAY,
    retryable_exceptions: Tuple[Type[Exception], ...] = (requests.exceptions.RequestException,),
    sleep: Optional[Sleep] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry the decorated call when it raises one of ``retryable_exceptions``.

    Other exceptions propagate at once. After ``max_retries`` retries the
    last exception is re-raised.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    if attempt >= max_retries:
                        logger.error(f"{func.__name__} 重试 {max_retries} 次后仍失败: {e}")
                        raise
                    delay = backoff_delay(attempt, base_delay)
                    attempt += 1
                    logger.warning(f"{func.__name__} 失败: {e}，{delay:.1f}s 后第 {attempt}/{max_retries} 次重试")
                    _pause(sleep, delay)

        return wrapper
    return decorator


def request_with_retry(
    session: requests.Session,
    method: str,
    url: str,
    max_retries: int = API_MAX_RETRIES,
    base_delay: float = API_RETRY_BASE_DELAY,
    sleep: Optional[Sleep] = None,
    **kwargs
) -> requests.Response:
    """
    Send ``method url`` through ``session``, retrying transport errors and
    429/5xx responses.

    Args:
        session: Session carrying the auth headers
        method: HTTP method
        url: Absolute request URL
        max_retries: Retries after the first attempt
        base_delay: Backoff base in seconds
        sleep: Sleep function (tests pass a recorder)
        **kwargs: Passed to ``session.request``; ``timeout`` defaults to REQUEST_TIMEOUT

    Returns:
        The first non-retryable response, or the last response once retries
        are used up

    Raises:
        requests.exceptions.RequestException: If the final attempt fails in transport
    """
    kwargs.setdefault("timeout", REQUEST_TIMEOUT)

    for attempt in range(max_retries + 1):
        last_attempt = attempt == max_retries
        try:
            response = session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            if last_attempt:
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(f"{method} {url} 失败: {e}，{delay:.1f}s 后重试")
            _pause(sleep, delay)
            continue

        if response.status_code not in RETRYABLE_STATUS_CODES:
            return response
        if last_attempt:
            logger.error(f"{method} {url} 重试耗尽，最后状态 HTTP {response.status_code}")
            return response

        delay = backoff_delay(attempt, base_delay, response.headers.get("Retry-After"))
        logger.warning(f"{method} {url} 返回 HTTP {response.status_code}，{delay:.1f}s 后重试")
        _pause(sleep, delay)

    raise requests.exceptions.RequestException(f"{method} {url}: no attempt made")
