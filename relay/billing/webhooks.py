"""
Reconcile PayPal subscription webhook events onto user records.

Each event resolves to at most one ``users/{uid}`` document and one merge
write. All writes are overwrites, so redelivery of the same event converges
on the same document state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple

from relay.db.models import (
    PAYPAL_PLAN_ID,
    PAYPAL_SUBSCRIPTION_ID,
    PENDING_PLAN,
    PLAN,
    STATUS,
    UpdateSet,
    UserRecord,
)

from .plans import DEFAULT_PLAN, PlanCatalog, PlanCode, SubscriptionStatus, parse_plan_code

logger = logging.getLogger(__name__)

SUBSCRIPTION_ACTIVATED = "BILLING.SUBSCRIPTION.ACTIVATED"
SUBSCRIPTION_UPDATED = "BILLING.SUBSCRIPTION.UPDATED"
SUBSCRIPTION_CANCELLED = "BILLING.SUBSCRIPTION.CANCELLED"
SUBSCRIPTION_SUSPENDED = "BILLING.SUBSCRIPTION.SUSPENDED"
SUBSCRIPTION_EXPIRED = "BILLING.SUBSCRIPTION.EXPIRED"
SUBSCRIPTION_PAYMENT_FAILED = "BILLING.SUBSCRIPTION.PAYMENT.FAILED"

SUSPENDING_EVENTS = frozenset(
    {
        SUBSCRIPTION_CANCELLED,
        SUBSCRIPTION_SUSPENDED,
        SUBSCRIPTION_EXPIRED,
        SUBSCRIPTION_PAYMENT_FAILED,
    }
)


class SubscriptionRecordStore(Protocol):
    def find_user_by_subscription_id(self, subscription_id: str) -> Optional[UserRecord]:
        ...

    def upsert_user(self, uid: str, updates: UpdateSet) -> Any:
        ...


@dataclass(frozen=True)
class WebhookEvent:
    """The parts of a PayPal event envelope the reconciler reads."""

    event_type: str = ""
    subscription_id: Optional[str] = None
    plan_id: Optional[str] = None
    resource_status: Optional[str] = None
    custom_id: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "WebhookEvent":
        if not isinstance(payload, Mapping):
            return cls()
        resource = payload.get("resource")
        if not isinstance(resource, Mapping):
            resource = {}
        return cls(
            event_type=str(payload.get("event_type") or ""),
            subscription_id=resource.get("id") or None,
            plan_id=resource.get("plan_id") or None,
            resource_status=resource.get("status"),
            custom_id=str(resource.get("custom_id") or ""),
        )


@dataclass
class WebhookOutcome:
    """Result of reconciling one event."""

    applied: bool
    uid: Optional[str] = None
    updates: UpdateSet = field(default_factory=UpdateSet)

    @property
    def ignored(self) -> bool:
        return not self.applied

    def as_response(self) -> Dict[str, Any]:
        if self.applied:
            return {"ok": True}
        return {"ok": True, "ignored": True}


def parse_custom_id(custom_id: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split ``"<uid>:<planCode>"`` into its segments; empty segments become None."""

    if not custom_id:
        return None, None
    parts = custom_id.split(":")
    uid = parts[0] or None
    plan_segment = parts[1] if len(parts) > 1 and parts[1] else None
    return uid, plan_segment


def resolve_plan_code(
    plan_id: Optional[str],
    custom_plan: Optional[str],
    catalog: PlanCatalog,
) -> PlanCode:
    """Configured plan id first, then the custom id's plan segment, then the top tier."""

    return catalog.plan_code_for(plan_id) or parse_plan_code(custom_plan) or DEFAULT_PLAN


def build_updates(
    event: WebhookEvent,
    catalog: PlanCatalog,
    *,
    preserve_missing_ids: bool = False,
) -> UpdateSet:
    """Translate ``event`` into field instructions for the target record."""

    updates = UpdateSet()
    if not preserve_missing_ids or event.subscription_id:
        updates.set(PAYPAL_SUBSCRIPTION_ID, event.subscription_id)
    if not preserve_missing_ids or event.plan_id:
        updates.set(PAYPAL_PLAN_ID, event.plan_id)

    _, custom_plan = parse_custom_id(event.custom_id)

    activates = event.event_type == SUBSCRIPTION_ACTIVATED or (
        event.event_type == SUBSCRIPTION_UPDATED
        and event.resource_status == SubscriptionStatus.ACTIVE.value
    )
    if activates:
        updates.set(STATUS, SubscriptionStatus.ACTIVE.value)
        updates.set(PLAN, resolve_plan_code(event.plan_id, custom_plan, catalog).value)
        updates.delete(PENDING_PLAN)
    elif event.event_type in SUSPENDING_EVENTS:
        updates.set(STATUS, SubscriptionStatus.SUSPENDED.value)
        updates.delete(PENDING_PLAN)

    return updates


def resolve_target(store: SubscriptionRecordStore, event: WebhookEvent) -> Optional[str]:
    """Return the uid the event belongs to, or None when it cannot be placed."""

    uid, _ = parse_custom_id(event.custom_id)
    if uid:
        return uid
    if event.subscription_id:
        record = store.find_user_by_subscription_id(event.subscription_id)
        if record is not None:
            return record.uid
    return None


def apply_webhook_event(
    store: SubscriptionRecordStore,
    payload: Any,
    catalog: PlanCatalog,
    *,
    preserve_missing_ids: bool = False,
) -> WebhookOutcome:
    """Resolve the target user and merge the mapped updates in a single write."""

    event = WebhookEvent.from_payload(payload)
    uid = resolve_target(store, event)
    if uid is None:
        logger.info(
            "Ignoring %s for unknown subscription %s",
            event.event_type or "event",
            event.subscription_id,
        )
        return WebhookOutcome(applied=False)

    updates = build_updates(event, catalog, preserve_missing_ids=preserve_missing_ids)
    store.upsert_user(uid, updates)
    logger.info("Applied %s to user %s", event.event_type or "event", uid)
    return WebhookOutcome(applied=True, uid=uid, updates=updates)


__all__ = [
    "SUBSCRIPTION_ACTIVATED",
    "SUBSCRIPTION_CANCELLED",
    "SUBSCRIPTION_EXPIRED",
    "SUBSCRIPTION_PAYMENT_FAILED",
    "SUBSCRIPTION_SUSPENDED",
    "SUBSCRIPTION_UPDATED",
    "SUSPENDING_EVENTS",
    "WebhookEvent",
    "WebhookOutcome",
    "apply_webhook_event",
    "build_updates",
    "parse_custom_id",
    "resolve_plan_code",
    "resolve_target",
]
