"""
security/rate_limiter.py
-------------------------
Per-user sliding-window rate limiting for bot commands.
Each command counts once; a user over the limit gets a warning and the
command is not executed.
"""

import time
from collections import defaultdict, deque
from functools import wraps
from typing import Callable, Optional

from telegram import Update
from telegram.ext import ContextTypes

from config import RATE_LIMIT_MESSAGES, RATE_LIMIT_WINDOW_SECONDS
from utils.logger import get_logger

logger = get_logger(__name__)

LIMIT_MESSAGE = "⚠️ You're sending commands too quickly. Please wait a moment and try again."


class RateLimiter:
    """
    Sliding window of command timestamps per user.

    Args:
        max_calls: Commands allowed per window.
        window_seconds: Window length.
        clock: Monotonic time source (seconds).
    """

    def __init__(
        self,
        max_calls: int = RATE_LIMIT_MESSAGES,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.clock = clock
        self._calls: dict[int, deque[float]] = defaultdict(deque)

    def allow(self, user_id: int, now: Optional[float] = None) -> bool:
        """Record a command for `user_id` and return False if it exceeds the limit."""
        now = self.clock() if now is None else now
        calls = self._calls[user_id]
        while calls and calls[0] <= now - self.window_seconds:
            calls.popleft()

        if len(calls) >= self.max_calls:
            return False
        calls.append(now)
        return True

    def reset(self, user_id: Optional[int] = None) -> None:
        """Forget one user's history, or everyone's."""
        if user_id is None:
            self._calls.clear()
        else:
            self._calls.pop(user_id, None)


default_limiter = RateLimiter()


def rate_limited(func: Optional[Callable] = None, *, limiter: Optional[RateLimiter] = None):
    """
    Decorator that enforces the per-user limit on a command handler.

    Usable bare (``@rate_limited``) or with a dedicated limiter
    (``@rate_limited(limiter=RateLimiter(5, 10))``). Updates without a user
    are dropped.
    """
    def decorate(handler: Callable):
        @wraps(handler)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
            user = update.effective_user
            if not user:
                return None

            if not (limiter or default_limiter).allow(user.id):
                logger.warning(f"Rate limit hit for user {user.id} on {handler.__name__}")
                await update.message.reply_text(LIMIT_MESSAGE)
                return None

            return await handler(update, context, *args, **kwargs)

        return wrapper

    if func is not None:
        return decorate(func)
    return decorate
