"""
Session domain models.

A session is one continuous application run from the stability-tracking
perspective. It starts ``ok`` and ends exactly once, as ``exited``,
``crashed`` or ``abnormal``; after that it is immutable.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from relaunch.core.exceptions import SessionStateError
from relaunch.core.utils.time import (
    DEFAULT_CLOCK,
    Clock,
    ensure_utc,
    format_timestamp,
    parse_iso8601,
)


class SessionStatus(str, Enum):
    OK = "ok"
    EXITED = "exited"
    CRASHED = "crashed"
    ABNORMAL = "abnormal"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.OK


@dataclass
class Session:
    """A session record.

    Attributes:
        id: Unique session identifier (uuid4 hex)
        started_at: When the run started
        timestamp: Last known update time; the best estimate of when the run was last alive
        status: Current status
        errors_count: Number of captured errors (never decreases)
        release_name: Release the run belongs to
        distinct_id: Optional user/installation identifier
        environment: Optional environment name
        duration_seconds: Run length, set only at termination
        ended_at: Termination time, set only at termination
        clock: Time source for refreshing ``timestamp``; not persisted
    """

    release_name: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: datetime = field(default_factory=lambda: DEFAULT_CLOCK.now())
    timestamp: Optional[datetime] = None
    status: SessionStatus = SessionStatus.OK
    errors_count: int = 0
    distinct_id: Optional[str] = None
    environment: Optional[str] = None
    duration_seconds: Optional[float] = None
    ended_at: Optional[datetime] = None
    clock: Optional[Clock] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.started_at = ensure_utc(self.started_at)
        if self.timestamp is None:
            self.timestamp = self.started_at
        else:
            self.timestamp = ensure_utc(self.timestamp)

    @classmethod
    def create(
        cls,
        release_name: str,
        *,
        distinct_id: Optional[str] = None,
        environment: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> "Session":
        """Create a new in-flight session started now."""
        now = (clock or DEFAULT_CLOCK).now()
        return cls(
            release_name=release_name,
            started_at=now,
            timestamp=now,
            distinct_id=distinct_id,
            environment=environment,
            clock=clock or DEFAULT_CLOCK,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def _require_in_flight(self, operation: str) -> None:
        if self.is_terminal:
            raise SessionStateError(
                f"Session {self.id} is already {self.status.value}",
                context={"sessionId": self.id, "status": self.status.value, "operation": operation},
            )

    def increment_errors(self, *, clock: Optional[Clock] = None) -> None:
        self._require_in_flight("increment_errors")
        self.errors_count += 1
        self.timestamp = (clock or self.clock or DEFAULT_CLOCK).now()

    def touch(self, *, clock: Optional[Clock] = None) -> None:
        """Refresh the last known timestamp of an in-flight session."""
        self._require_in_flight("touch")
        self.timestamp = (clock or self.clock or DEFAULT_CLOCK).now()

    def _end(self, status: SessionStatus, timestamp: datetime) -> None:
        self._require_in_flight(f"end_{status.value}")
        ended_at = max(ensure_utc(timestamp), self.started_at)
        self.status = status
        self.ended_at = ended_at
        self.timestamp = ended_at
        self.duration_seconds = (ended_at - self.started_at).total_seconds()

    def end_crashed(self, timestamp: datetime) -> None:
        self._end(SessionStatus.CRASHED, timestamp)

    def end_abnormal(self, timestamp: datetime) -> None:
        self._end(SessionStatus.ABNORMAL, timestamp)

    def end_exited(self, timestamp: datetime) -> None:
        self._end(SessionStatus.EXITED, timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted wire shape.

        An in-flight session that carries a clock (every session made by
        :meth:`create`) refreshes its timestamp first, so each persisted copy
        records when the run was last known alive.
        """
        if self.clock is not None and not self.is_terminal:
            self.touch()
        data: Dict[str, Any] = {
            "id": self.id,
            "startedAt": format_timestamp(self.started_at),
            "timestamp": format_timestamp(self.timestamp or self.started_at),
            "status": self.status.value,
            "errorsCount": self.errors_count,
            "releaseName": self.release_name,
        }
        if self.distinct_id is not None:
            data["distinctId"] = self.distinct_id
        if self.environment is not None:
            data["environment"] = self.environment
        if self.duration_seconds is not None:
            data["duration"] = self.duration_seconds
        if self.ended_at is not None:
            data["endedAt"] = format_timestamp(self.ended_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """Create a Session from its wire shape.

        Raises:
            ValueError: If required fields are missing or malformed.
        """
        try:
            started_at = parse_iso8601(data["startedAt"])
            timestamp = parse_iso8601(data["timestamp"]) if data.get("timestamp") else started_at
            ended_at = parse_iso8601(data["endedAt"]) if data.get("endedAt") else None
            duration = data.get("duration")
            return cls(
                id=str(data["id"]),
                release_name=str(data["releaseName"]),
                started_at=started_at,
                timestamp=timestamp,
                status=SessionStatus(data["status"]),
                errors_count=int(data.get("errorsCount", 0)),
                distinct_id=data.get("distinctId"),
                environment=data.get("environment"),
                duration_seconds=float(duration) if duration is not None else None,
                ended_at=ended_at,
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed session record: {exc}") from exc


__all__ = ["Session", "SessionStatus"]
