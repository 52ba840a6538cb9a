"""
Core helpers shared across memos-sync.

- retry: backoff decorator and retrying session requests
"""

from memos_sync.core.retry import backoff_delay, request_with_retry, retry_on_failure

__all__ = ['backoff_delay', 'request_with_retry', 'retry_on_failure']
