"""Tests for the whitelist and rate-limit handler guards."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from security import auth, rate_limiter
from security.rate_limiter import RateLimiter


def _update(user_id: int):
    return SimpleNamespace(
        effective_user=SimpleNamespace(id=user_id, username="someone", first_name="Sam"),
        message=SimpleNamespace(reply_text=AsyncMock()),
    )


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


# =============================================================================
# RATE LIMITER
# =============================================================================


class TestRateLimiter:
    def test_limit_within_window(self):
        clock = FakeClock()
        limiter = RateLimiter(max_messages=2, window_seconds=60, clock=clock)
        assert limiter.hit(1)
        assert limiter.hit(1)
        assert not limiter.hit(1)
        # other users are counted separately
        assert limiter.hit(2)

    def test_window_slides(self):
        clock = FakeClock()
        limiter = RateLimiter(max_messages=1, window_seconds=60, clock=clock)
        assert limiter.hit(1)
        clock.now += 30
        assert not limiter.hit(1)
        clock.now += 31
        assert limiter.hit(1)

    def test_reset(self):
        limiter = RateLimiter(max_messages=1, window_seconds=60, clock=FakeClock())
        limiter.hit(1)
        limiter.reset(1)
        assert limiter.hit(1)

    async def test_decorator_blocks_over_limit(self, monkeypatch):
        monkeypatch.setattr(rate_limiter, "limiter", RateLimiter(1, 60, clock=FakeClock()))
        calls = []

        @rate_limiter.rate_limited
        async def handler(update, context):
            calls.append(update.effective_user.id)

        update = _update(5)
        await handler(update, None)
        await handler(update, None)

        assert calls == [5]
        update.message.reply_text.assert_awaited_once()


# =============================================================================
# WHITELIST
# =============================================================================


class TestAuth:
    @pytest.mark.parametrize(
        ("user_id", "allowed", "expected"),
        [(1, [], True), (1, [1, 2], True), (3, [1, 2], False)],
    )
    def test_is_allowed(self, user_id, allowed, expected):
        assert auth.is_allowed(user_id, allowed) is expected

    async def test_decorator_rejects_strangers(self, monkeypatch):
        monkeypatch.setattr(auth, "ALLOWED_USER_IDS", [1])
        calls = []

        @auth.authorized_only
        async def guarded(update, context):
            calls.append(update.effective_user.id)

        stranger = _update(9)
        await guarded(stranger, None)
        assert calls == []
        stranger.message.reply_text.assert_awaited_once_with(auth.DENIED_TEXT)

        await guarded(_update(1), None)
        assert calls == [1]
