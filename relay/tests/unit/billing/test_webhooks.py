"""Tests for PayPal webhook reconciliation."""

from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

from conftest import PLUS_PLAN_ID, PRO_PLAN_ID, InMemoryUserStore
from relay.billing import webhooks
from relay.billing.plans import PlanCatalog, PlanCode
from relay.db.models import Delete, Set, Unchanged


def _event(
    event_type: str,
    *,
    subscription_id: Optional[str] = "I-SUB-1",
    plan_id: Optional[str] = None,
    status: Optional[str] = None,
    custom_id: str = "",
) -> Dict[str, Any]:
    resource: Dict[str, Any] = {"custom_id": custom_id}
    if subscription_id is not None:
        resource["id"] = subscription_id
    if plan_id is not None:
        resource["plan_id"] = plan_id
    if status is not None:
        resource["status"] = status
    return {"id": "WH-EVT-1", "event_type": event_type, "resource": resource}


def test_parse_custom_id_splits_uid_and_plan() -> None:
    assert webhooks.parse_custom_id("u1:PLUS") == ("u1", "PLUS")
    assert webhooks.parse_custom_id("u1") == ("u1", None)
    assert webhooks.parse_custom_id(":PRO") == (None, "PRO")
    assert webhooks.parse_custom_id("") == (None, None)
    assert webhooks.parse_custom_id(None) == (None, None)


def test_resolve_plan_code_prefers_configured_plan_id(catalog: PlanCatalog) -> None:
    assert webhooks.resolve_plan_code(PLUS_PLAN_ID, "PRO", catalog) is PlanCode.PLUS
    assert webhooks.resolve_plan_code("P-UNKNOWN", "PLUS", catalog) is PlanCode.PLUS
    assert webhooks.resolve_plan_code(None, None, catalog) is PlanCode.PRO
    assert webhooks.resolve_plan_code(None, "GOLD", catalog) is PlanCode.PRO


def test_activated_event_uses_custom_id_plan_when_plan_id_unknown(catalog: PlanCatalog) -> None:
    store = InMemoryUserStore({"u1": {"pendingPlan": "PLUS"}})
    event = _event(webhooks.SUBSCRIPTION_ACTIVATED, plan_id="P-UNKNOWN", custom_id="u1:PLUS")

    outcome = webhooks.apply_webhook_event(store, event, catalog)

    assert outcome.applied is True
    assert outcome.uid == "u1"
    assert store.lookups == []
    document = store.documents["u1"]
    assert document["plan"] == "PLUS"
    assert document["status"] == "ACTIVE"
    assert "pendingPlan" not in document
    assert document["paypalSubscriptionId"] == "I-SUB-1"
    assert document["paypalPlanId"] == "P-UNKNOWN"


def test_activated_event_maps_configured_plan_id(catalog: PlanCatalog) -> None:
    updates = webhooks.build_updates(
        webhooks.WebhookEvent.from_payload(
            _event(webhooks.SUBSCRIPTION_ACTIVATED, plan_id=PLUS_PLAN_ID, custom_id="u1:PRO")
        ),
        catalog,
    )

    assert updates.get("plan") == Set("PLUS")
    assert updates.get("status") == Set("ACTIVE")
    assert updates.get("pendingPlan") is Delete


def test_activated_event_defaults_to_highest_tier(catalog: PlanCatalog) -> None:
    store = InMemoryUserStore()
    webhooks.apply_webhook_event(store, _event(webhooks.SUBSCRIPTION_ACTIVATED, custom_id="u9"), catalog)

    assert store.documents["u9"]["plan"] == "PRO"


@pytest.mark.parametrize(
    "event_type",
    [
        webhooks.SUBSCRIPTION_CANCELLED,
        webhooks.SUBSCRIPTION_SUSPENDED,
        webhooks.SUBSCRIPTION_EXPIRED,
        webhooks.SUBSCRIPTION_PAYMENT_FAILED,
    ],
)
def test_suspending_events_resolve_user_by_subscription_id(event_type: str, catalog: PlanCatalog) -> None:
    store = InMemoryUserStore(
        {
            "u1": {
                "paypalSubscriptionId": "I-SUB-1",
                "plan": "PLUS",
                "status": "ACTIVE",
                "pendingPlan": "PRO",
            }
        }
    )

    outcome = webhooks.apply_webhook_event(store, _event(event_type, plan_id=PLUS_PLAN_ID), catalog)

    assert outcome.applied is True
    assert store.lookups == ["I-SUB-1"]
    document = store.documents["u1"]
    assert document["status"] == "SUSPENDED"
    assert document["plan"] == "PLUS"
    assert "pendingPlan" not in document


def test_updated_event_with_active_status_activates(catalog: PlanCatalog) -> None:
    updates = webhooks.build_updates(
        webhooks.WebhookEvent.from_payload(
            _event(webhooks.SUBSCRIPTION_UPDATED, plan_id=PRO_PLAN_ID, status="ACTIVE")
        ),
        catalog,
    )

    assert updates.get("status") == Set("ACTIVE")
    assert updates.get("plan") == Set("PRO")
    assert updates.get("pendingPlan") is Delete


def test_updated_event_without_active_status_only_stamps_ids(catalog: PlanCatalog) -> None:
    updates = webhooks.build_updates(
        webhooks.WebhookEvent.from_payload(
            _event(webhooks.SUBSCRIPTION_UPDATED, plan_id=PRO_PLAN_ID, status="APPROVAL_PENDING")
        ),
        catalog,
    )

    assert updates.get("status") is Unchanged
    assert updates.get("plan") is Unchanged
    assert updates.get("pendingPlan") is Unchanged
    assert dict(updates.items()) == {
        "paypalSubscriptionId": Set("I-SUB-1"),
        "paypalPlanId": Set(PRO_PLAN_ID),
    }


def test_unknown_event_type_only_stamps_ids(catalog: PlanCatalog) -> None:
    store = InMemoryUserStore({"u1": {"plan": "PLUS", "status": "ACTIVE", "pendingPlan": "PRO"}})

    webhooks.apply_webhook_event(store, _event("PAYMENT.SALE.COMPLETED", custom_id="u1:PLUS"), catalog)

    document = store.documents["u1"]
    assert document["plan"] == "PLUS"
    assert document["status"] == "ACTIVE"
    assert document["pendingPlan"] == "PRO"
    assert document["paypalSubscriptionId"] == "I-SUB-1"
    assert document["paypalPlanId"] is None


def test_missing_resource_ids_overwrite_known_values_by_default(catalog: PlanCatalog) -> None:
    store = InMemoryUserStore({"u1": {"paypalSubscriptionId": "I-OLD", "paypalPlanId": PRO_PLAN_ID}})

    webhooks.apply_webhook_event(
        store,
        _event(webhooks.SUBSCRIPTION_CANCELLED, subscription_id=None, custom_id="u1"),
        catalog,
    )

    assert store.documents["u1"]["paypalSubscriptionId"] is None
    assert store.documents["u1"]["paypalPlanId"] is None


def test_preserve_missing_ids_keeps_known_values(catalog: PlanCatalog) -> None:
    store = InMemoryUserStore({"u1": {"paypalSubscriptionId": "I-OLD", "paypalPlanId": PRO_PLAN_ID}})

    webhooks.apply_webhook_event(
        store,
        _event(webhooks.SUBSCRIPTION_CANCELLED, subscription_id=None, custom_id="u1"),
        catalog,
        preserve_missing_ids=True,
    )

    assert store.documents["u1"]["paypalSubscriptionId"] == "I-OLD"
    assert store.documents["u1"]["paypalPlanId"] == PRO_PLAN_ID
    assert store.documents["u1"]["status"] == "SUSPENDED"


def test_unresolvable_event_is_ignored_without_writes(catalog: PlanCatalog) -> None:
    store = InMemoryUserStore({"u1": {"paypalSubscriptionId": "I-OTHER"}})

    outcome = webhooks.apply_webhook_event(
        store,
        _event(webhooks.SUBSCRIPTION_CANCELLED, subscription_id="I-UNKNOWN"),
        catalog,
    )

    assert outcome.ignored is True
    assert outcome.as_response() == {"ok": True, "ignored": True}
    assert store.writes == []


def test_malformed_payload_is_ignored(catalog: PlanCatalog) -> None:
    store = InMemoryUserStore()

    outcome = webhooks.apply_webhook_event(store, {"event_type": 42, "resource": "oops"}, catalog)

    assert outcome.ignored is True
    assert store.writes == []


@pytest.mark.parametrize(
    "event",
    [
        _event(webhooks.SUBSCRIPTION_ACTIVATED, plan_id=PLUS_PLAN_ID, custom_id="u1:PLUS"),
        _event(webhooks.SUBSCRIPTION_ACTIVATED, custom_id="u1:PLUS"),
        _event(webhooks.SUBSCRIPTION_CANCELLED, custom_id="u1"),
        _event(webhooks.SUBSCRIPTION_SUSPENDED, custom_id="u1"),
        _event(webhooks.SUBSCRIPTION_EXPIRED, custom_id="u1"),
        _event(webhooks.SUBSCRIPTION_PAYMENT_FAILED, custom_id="u1"),
        _event(webhooks.SUBSCRIPTION_UPDATED, plan_id=PRO_PLAN_ID, status="ACTIVE", custom_id="u1"),
        _event(webhooks.SUBSCRIPTION_UPDATED, status="SUSPENDED", custom_id="u1"),
        _event("BILLING.PLAN.UPDATED", custom_id="u1"),
    ],
)
def test_redelivery_converges_on_same_state(event: Dict[str, Any], catalog: PlanCatalog) -> None:
    initial = {"plan": "PLUS", "pendingPlan": "PRO", "status": "SUSPENDED", "email": "keep@example.com"}
    once = InMemoryUserStore({"u1": initial})
    twice = InMemoryUserStore({"u1": initial})

    webhooks.apply_webhook_event(once, event, catalog)
    webhooks.apply_webhook_event(twice, event, catalog)
    webhooks.apply_webhook_event(twice, event, catalog)

    strip = lambda doc: {key: value for key, value in doc.items() if key != "updatedAt"}  # noqa: E731
    assert strip(once.documents["u1"]) == strip(twice.documents["u1"])
    assert once.documents["u1"]["email"] == "keep@example.com"
