"""Service Messages — request/reply envelopes exchanged over the event bus.

Invariants:
    - ServiceRequest.action carries a PageAction value; consumers reject anything else
    - ServiceReply carries exactly one of result (ok=True) or error (ok=False)
    - Per-action payload models validate inputs on the consumer side

Design Decisions:
    - action as a header-like field + free payload dict: mirrors an address/action
      message bus, keeps the envelope stable while payloads vary per action
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ServiceRequest(BaseModel):
    """Request envelope — one page-service operation."""
    action: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ServiceReply(BaseModel):
    """Reply envelope — result on success, error payload on failure."""
    ok: bool
    result: Any = None
    error: dict[str, Any] | None = None

    @model_validator(mode="after")
    def validate_error_present(self):
        if not self.ok and self.error is None:
            raise ValueError("failed reply requires error payload")
        return self

    @classmethod
    def success(cls, result: Any = None) -> "ServiceReply":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, error: dict[str, Any]) -> "ServiceReply":
        return cls(ok=False, error=error)


# --- Per-action payloads ------------------------------------------------------

class FetchPagePayload(BaseModel):
    name: str


class CreatePagePayload(BaseModel):
    name: str
    content: str | None = None


class SavePagePayload(BaseModel):
    id: int
    content: str


class DeletePagePayload(BaseModel):
    id: int
