"""In-memory throttling for form submissions."""
from __future__ import annotations

import asyncio
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Deque, Dict

from adminpanel.core.errors import DuplicateSubmissionError


class RateLimiter:
    """Sliding-window rate limiting keyed by client, with idle keys evicted."""

    def __init__(self) -> None:
        self._attempts: Dict[str, Deque[float]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._attempts)

    def _evict_idle(self, window_start: float) -> None:
        idle = [key for key, bucket in self._attempts.items() if not bucket or bucket[-1] < window_start]
        for key in idle:
            del self._attempts[key]

    async def is_allowed(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Return True when the request should be allowed for the key."""
        async with self._lock:
            now = time.time()
            window_start = now - window_seconds
            self._evict_idle(window_start)

            bucket = self._attempts.get(key)
            if bucket is None:
                bucket = self._attempts[key] = deque()

            while bucket and bucket[0] < window_start:
                bucket.popleft()

            if len(bucket) >= max_requests:
                return False

            bucket.append(now)
            return True

    def reset(self) -> None:
        self._attempts.clear()


class SubmissionGuard:
    """Reject a form submission while an earlier one for the same key is pending."""

    def __init__(self) -> None:
        self._pending: set[str] = set()
        self._lock = asyncio.Lock()

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        async with self._lock:
            if key in self._pending:
                raise DuplicateSubmissionError("This form is already being submitted. Please wait.")
            self._pending.add(key)
        try:
            yield
        finally:
            self._pending.discard(key)


rate_limiter = RateLimiter()
submission_guard = SubmissionGuard()
