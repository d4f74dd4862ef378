"""Pydantic schemas for the public API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    ok: bool = True


class ChatRequest(BaseModel):
    # Validated in the route so a missing or empty list yields the API's own 400.
    messages: Any = None
    model: Optional[str] = None


class ChatResponse(BaseModel):
    reply: str


class CreateSubscriptionRequest(BaseModel):
    planCode: Any = None


class CreateSubscriptionResponse(BaseModel):
    approvalUrl: str
    subscriptionId: str


class WebhookAck(BaseModel):
    ok: bool = True
    ignored: Optional[bool] = None
