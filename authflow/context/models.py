from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ContextOutcome(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    CANCELLED = "cancelled"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionRecord(BaseModel):
    """
    Summary of a single UserContext execution that completed normally.

    `handler` is the label of the slot whose handler ran.
    """

    model_config = ConfigDict(frozen=True)

    subject_id: str
    permission: Optional[str] = None
    outcome: ContextOutcome
    handler: str
    error_type: Optional[str] = None
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: datetime = Field(default_factory=_utcnow)

    @property
    def duration_ms(self) -> float:
        return max(0.0, (self.finished_at - self.started_at).total_seconds() * 1000.0)
