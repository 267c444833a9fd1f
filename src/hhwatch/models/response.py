"""Watchman response models."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, Field


class SocknameResponse(BaseModel):
    """Output of ``watchman get-sockname``."""

    sockname: str


class WatchProjectResponse(BaseModel):
    """Reply to ``watch-project``."""

    watch: str
    relative_path: str = ""


class ClockResponse(BaseModel):
    """Reply to ``clock``."""

    clock: str


class QueryResponse(BaseModel):
    """Reply to ``query``."""

    clock: str
    files: list[str]


class SubscriptionPush(BaseModel):
    """Unsolicited result pushed for a subscription.

    State notifications carry a clock but no file list.
    """

    clock: str
    files: list[str] = Field(default_factory=list)
    subscription: str | None = None


class Update(BaseModel):
    """A pushed change set."""

    kind: Literal["update"] = "update"
    clock: str
    files: list[str]


class NoUpdate(BaseModel):
    """Nothing was pushed; carries a freshly fetched clock."""

    kind: Literal["no_update"] = "no_update"
    clock: str

    @property
    def files(self) -> list[str]:
        return []


PollResult = Union[Update, NoUpdate]
