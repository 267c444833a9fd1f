"""Data models for hhwatch."""

from hhwatch.models.config import (
    Config,
    FilterConfig,
    LoggingConfig,
    WatchmanConfig,
)
from hhwatch.models.response import (
    ClockResponse,
    NoUpdate,
    PollResult,
    QueryResponse,
    SocknameResponse,
    SubscriptionPush,
    Update,
    WatchProjectResponse,
)

__all__ = [
    "Config",
    "FilterConfig",
    "LoggingConfig",
    "WatchmanConfig",
    "ClockResponse",
    "NoUpdate",
    "PollResult",
    "QueryResponse",
    "SocknameResponse",
    "SubscriptionPush",
    "Update",
    "WatchProjectResponse",
]
