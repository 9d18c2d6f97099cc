"""
Slim Pydantic schemas for the schedule table, outbound requests
and the health endpoint.

Everything here is immutable: a trigger is fixed at startup and a
dispatch request lives for exactly one HTTP call.
"""
from enum import Enum
from typing import Optional, Any, Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator


# === Enums ===

class AuthMode(str, Enum):
    """How the shared secret is presented to a downstream service."""
    TOKEN_HEADER = "token-header"
    BEARER = "bearer"


class WakeUpOutcome(str, Enum):
    OK = "ok"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"


class TriggerOutcome(str, Enum):
    ACCEPTED = "accepted"
    BUSY = "busy"
    FORBIDDEN = "forbidden"
    FAILED = "failed"
    TRANSPORT_ERROR = "transport_error"


# === Schedule Schemas ===

class ScheduledTrigger(BaseModel):
    """One row of the cron table: when to fire and what to call."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    cron: str = Field(min_length=1)
    kind: Literal["wake_up", "run_task"]
    service: str
    url_setting: str  # name of the Settings field holding the base URL
    path: str
    auth_mode: AuthMode = AuthMode.BEARER
    max_jitter_seconds: int = Field(default=0, ge=0)
    payload: Optional[dict[str, Any]] = None

    @field_validator("path")
    @classmethod
    def path_starts_with_slash(cls, v: str) -> str:
        if not v.startswith("/"):
            return "/" + v
        return v


# === Dispatch Schemas ===

class DispatchRequest(BaseModel):
    """A single outbound HTTP call."""
    model_config = ConfigDict(frozen=True)

    url: str
    method: Literal["GET", "POST"] = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[dict[str, Any]] = None


# === Health Check Schemas ===

class HealthStatus(BaseModel):
    """Liveness status."""
    status: str = "ok"
