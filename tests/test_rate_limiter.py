"""Unit tests for per-user command rate limiting."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from handlers import dashboard_handler, export_handler, payment_handler, start_handler, subscription_handler
from security.rate_limiter import LIMIT_MESSAGE, RateLimiter, rate_limited
from tests.conftest import OTHER_USER_ID, USER_ID


class FakeMessage:
    def __init__(self):
        self.replies: list[str] = []

    async def reply_text(self, text, **kwargs):
        self.replies.append(text)


def _update(user_id=USER_ID):
    user = SimpleNamespace(id=user_id, first_name="Giulia") if user_id is not None else None
    return SimpleNamespace(effective_user=user, message=FakeMessage())


def test_allows_up_to_the_limit_within_the_window():
    limiter = RateLimiter(max_calls=3, window_seconds=60)

    assert [limiter.allow(USER_ID, now=t) for t in (0, 1, 2, 3)] == [True, True, True, False]
    assert limiter.allow(OTHER_USER_ID, now=3)


def test_window_slides():
    limiter = RateLimiter(max_calls=2, window_seconds=10)
    limiter.allow(USER_ID, now=0)
    limiter.allow(USER_ID, now=5)

    assert not limiter.allow(USER_ID, now=9.9)
    assert limiter.allow(USER_ID, now=10)
    assert not limiter.allow(USER_ID, now=14)
    assert limiter.allow(USER_ID, now=15)


def test_rejected_calls_do_not_extend_the_block():
    limiter = RateLimiter(max_calls=1, window_seconds=10)
    limiter.allow(USER_ID, now=0)
    for t in range(1, 10):
        limiter.allow(USER_ID, now=t)

    assert limiter.allow(USER_ID, now=10)


def test_reset():
    limiter = RateLimiter(max_calls=1, window_seconds=60)
    limiter.allow(USER_ID, now=0)
    limiter.allow(OTHER_USER_ID, now=0)

    limiter.reset(USER_ID)
    assert limiter.allow(USER_ID, now=1)
    assert not limiter.allow(OTHER_USER_ID, now=1)
    limiter.reset()
    assert limiter.allow(OTHER_USER_ID, now=1)


def test_decorator_blocks_handler_and_warns():
    calls = []

    @rate_limited(limiter=RateLimiter(max_calls=2, window_seconds=60))
    async def handler(update, context):
        calls.append(update.effective_user.id)
        return "ok"

    updates = [_update() for _ in range(3)]
    results = [asyncio.run(handler(u, None)) for u in updates]

    assert results == ["ok", "ok", None]
    assert calls == [USER_ID, USER_ID]
    assert updates[2].message.replies == [LIMIT_MESSAGE]
    assert handler.__name__ == "handler"


def test_decorator_drops_updates_without_user():
    @rate_limited(limiter=RateLimiter(max_calls=1, window_seconds=60))
    async def handler(update, context):
        return "ok"

    assert asyncio.run(handler(_update(user_id=None), None)) is None


@pytest.mark.parametrize(
    "module, name",
    [
        (start_handler, "start_command"),
        (start_handler, "help_command"),
        (start_handler, "email_command"),
        (subscription_handler, "subscriptions_command"),
        (subscription_handler, "add_subscription_command"),
        (subscription_handler, "edit_subscription_command"),
        (subscription_handler, "cancel_subscription_command"),
        (subscription_handler, "delete_subscription_command"),
        (payment_handler, "payments_command"),
        (payment_handler, "pay_command"),
        (payment_handler, "unpay_command"),
        (payment_handler, "refresh_command"),
        (dashboard_handler, "dashboard_command"),
        (dashboard_handler, "chart_command"),
        (export_handler, "export_csv_command"),
        (export_handler, "export_excel_command"),
    ],
)
def test_every_command_is_rate_limited(module, name):
    command = getattr(module, name)

    assert command.__name__ == name
    assert hasattr(command, "__wrapped__")


def test_help_command_is_refused_past_the_default_limit(monkeypatch):
    monkeypatch.setattr("security.rate_limiter.default_limiter", RateLimiter(max_calls=1, window_seconds=60))
    first, second = _update(), _update()

    asyncio.run(start_handler.help_command(first, None))
    asyncio.run(start_handler.help_command(second, None))

    assert "Welcome to SubTrack" in first.message.replies[0]
    assert second.message.replies == [LIMIT_MESSAGE]
