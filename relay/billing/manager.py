"""High-level billing helpers for starting subscriptions and reconciling webhooks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from relay.db.models import PAYPAL_PLAN_ID, PAYPAL_SUBSCRIPTION_ID, PENDING_PLAN, UpdateSet

from .paypal_service import find_approval_url
from .plans import PlanCatalog, parse_plan_code
from .providers.base import BillingProvider
from .webhooks import SubscriptionRecordStore, WebhookOutcome, apply_webhook_event

logger = logging.getLogger(__name__)


class InvalidPlanError(ValueError):
    """Raised when a requested plan code is unknown or has no PayPal plan id."""


class MissingApprovalLinkError(RuntimeError):
    """Raised when PayPal created a subscription without a buyer approval link."""


class MissingSubscriptionIdError(RuntimeError):
    """Raised when PayPal created a subscription without returning its id."""


class WebhookNotVerifiedError(RuntimeError):
    """Raised when PayPal reports that a webhook signature does not match."""


@dataclass(frozen=True)
class SubscriptionCheckout:
    approval_url: str
    subscription_id: str


def build_return_urls(base_url: str) -> tuple[str, str]:
    base = base_url.rstrip("/")
    return (
        f"{base}/dashboard/plan?paypal=success",
        f"{base}/dashboard/plan?paypal=cancel",
    )


class BillingManager:
    """Facade that starts subscriptions and applies provider webhooks to user records."""

    def __init__(
        self,
        store: SubscriptionRecordStore,
        provider: BillingProvider,
        catalog: PlanCatalog,
        *,
        preserve_missing_ids: bool = False,
    ):
        self._store = store
        self._provider = provider
        self._catalog = catalog
        self._preserve_missing_ids = preserve_missing_ids

    # ------------------------------------------------------------------
    # Subscription creation
    # ------------------------------------------------------------------
    def create_subscription(self, uid: str, plan_code: Any, base_url: str) -> SubscriptionCheckout:
        """Create a PayPal subscription for ``uid`` and record it as pending."""

        code = parse_plan_code(plan_code)
        plan_id = self._catalog.plan_id_for(code)
        if code is None or not plan_id:
            raise InvalidPlanError("Invalid plan")

        return_url, cancel_url = build_return_urls(base_url)
        subscription = self._provider.create_subscription(
            plan_id=plan_id,
            custom_id=f"{uid}:{code.value}",
            return_url=return_url,
            cancel_url=cancel_url,
        )

        approval_url = find_approval_url(subscription)
        if not approval_url:
            raise MissingApprovalLinkError("No approval link")

        subscription_id = subscription.get("id")
        if not subscription_id:
            raise MissingSubscriptionIdError("No subscription id")
        updates = (
            UpdateSet()
            .set(PAYPAL_SUBSCRIPTION_ID, subscription_id)
            .set(PAYPAL_PLAN_ID, plan_id)
            .set(PENDING_PLAN, code.value)
        )
        self._store.upsert_user(uid, updates)
        logger.info("Created PayPal subscription %s for user %s (%s)", subscription_id, uid, code.value)
        return SubscriptionCheckout(approval_url=approval_url, subscription_id=subscription_id)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------
    def handle_webhook(self, headers: Mapping[str, str], payload: Any) -> WebhookOutcome:
        """Verify the delivery with the provider, then reconcile it.

        Nothing is written unless verification succeeds.
        """

        if not self._provider.verify_webhook(headers, payload):
            raise WebhookNotVerifiedError("Webhook not verified")
        return apply_webhook_event(
            self._store,
            payload,
            self._catalog,
            preserve_missing_ids=self._preserve_missing_ids,
        )
