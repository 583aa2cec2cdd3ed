"""Business logic services."""

from .rate_limiter import (
    RateLimitMiddleware,
    RateLimiter,
    get_rate_limiter,
    set_rate_limiter,
)
from .timers import LoopScheduler, RecurringTimer, Scheduler, TimerHandle

__all__ = [
    "RateLimiter",
    "RateLimitMiddleware",
    "get_rate_limiter",
    "set_rate_limiter",
    "LoopScheduler",
    "RecurringTimer",
    "Scheduler",
    "TimerHandle",
]
