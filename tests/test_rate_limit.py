import asyncio

import pytest

from adminpanel.core.errors import DuplicateSubmissionError
from adminpanel.core.rate_limit import RateLimiter, SubmissionGuard


async def test_rate_limiter_blocks_after_limit_per_key():
    limiter = RateLimiter()

    assert await limiter.is_allowed("login:1.2.3.4", 2, 60)
    assert await limiter.is_allowed("login:1.2.3.4", 2, 60)
    assert not await limiter.is_allowed("login:1.2.3.4", 2, 60)
    assert await limiter.is_allowed("login:5.6.7.8", 2, 60)

    limiter.reset()
    assert await limiter.is_allowed("login:1.2.3.4", 2, 60)


async def test_submission_guard_rejects_concurrent_duplicate():
    guard = SubmissionGuard()
    entered = asyncio.Event()
    release = asyncio.Event()

    async def slow_submit():
        async with guard.hold("create-admin"):
            entered.set()
            await release.wait()

    task = asyncio.create_task(slow_submit())
    await entered.wait()

    assert guard.is_pending("create-admin")
    with pytest.raises(DuplicateSubmissionError):
        async with guard.hold("create-admin"):
            pass

    release.set()
    await task
    assert not guard.is_pending("create-admin")


async def test_submission_guard_releases_after_failure():
    guard = SubmissionGuard()

    with pytest.raises(RuntimeError):
        async with guard.hold("login"):
            raise RuntimeError("backend exploded")

    async with guard.hold("login"):
        assert guard.is_pending("login")


async def test_rate_limiter_forgets_idle_keys(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr("adminpanel.core.rate_limit.time.time", lambda: clock[0])
    limiter = RateLimiter()

    for index in range(5):
        assert await limiter.is_allowed(f"10.0.0.{index}:user@example.com", 3, 60)
    assert len(limiter) == 5

    clock[0] += 120
    assert await limiter.is_allowed("10.0.0.9:other@example.com", 3, 60)

    assert len(limiter) == 1
