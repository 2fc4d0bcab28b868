"""Request-class identifiers and lifecycle event models.

The request coordinator emits one ``RequestStarted`` per call and exactly one
of ``RequestSucceeded`` / ``RequestFailed`` when the call settles (superseded
calls settle as ``RequestFailed`` with kind ``CANCELLED``).  Events are frozen
Pydantic models so listeners can keep them in history buffers or serialize
them straight to JSON.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from animebrowse.utils.errors import FailureKind


class RequestClass(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Single-flight slots used by the query service.

    At most one call per class is outstanding; starting a new call of a class
    supersedes the previous one.
    """

    SEARCH = "search"
    TOP_LISTING = "top-listing"
    DETAILS = "details"
    RECOMMENDATIONS = "recommendations"


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class _LifecycleEventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_class: str
    handle: int
    key: str = ""
    timestamp: datetime = Field(default_factory=_utc_now)


class RequestStarted(_LifecycleEventBase):
    event: Literal["start"] = "start"


class RequestSucceeded(_LifecycleEventBase):
    event: Literal["success"] = "success"
    duration_ms: float
    summary: str = ""


class RequestFailed(_LifecycleEventBase):
    event: Literal["failure"] = "failure"
    duration_ms: float
    kind: FailureKind
    message: str = ""


LifecycleEvent = Union[RequestStarted, RequestSucceeded, RequestFailed]
