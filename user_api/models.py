from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_serializer

# Persisted form: fixed width, so text order in SQLite equals time order.
DB_TS_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
HEALTH_TS_FORMAT = "%Y-%m-%d %H:%M:%S"

# SQLite INTEGER is a signed 64-bit value
MAX_SQLITE_INT = 2**63 - 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ts_to_db(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(DB_TS_FORMAT)


def ts_from_db(value: str) -> datetime:
    return datetime.strptime(value, DB_TS_FORMAT).replace(tzinfo=timezone.utc)


def ts_to_json(value: datetime) -> str:
    """RFC 3339, always with microseconds and offset."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class UserCandidate(BaseModel):
    """Caller-supplied fields of a user; missing keys fall through to validation."""
    name: StrictStr = ""
    email: StrictStr = ""
    age: Annotated[StrictInt, Field(le=MAX_SQLITE_INT)] = 0

    def problems(self) -> list[str]:
        out = []
        if self.name == "":
            out.append("name")
        if self.email == "":
            out.append("email")
        if self.age <= 0:
            out.append("age")
        return out


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    age: int
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def _ser_ts(self, value: datetime) -> str:
        return ts_to_json(value)


class HealthStatus(BaseModel):
    status: str = "healthy"
    timestamp: str

    @classmethod
    def now(cls) -> "HealthStatus":
        return cls(timestamp=datetime.now().strftime(HEALTH_TS_FORMAT))


Payload = Union[List[User], User, HealthStatus, None]


class Envelope(BaseModel):
    """Uniform response body: ``{"code", "message", "data"?}``."""
    code: int
    message: str
    data: Optional[Union[List[User], User, HealthStatus]] = None

    def to_json(self) -> dict:
        # `data` is left out entirely when there is no payload
        return self.model_dump(mode="json", exclude_none=True)
