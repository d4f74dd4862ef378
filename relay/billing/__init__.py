"""PayPal subscription billing module."""

from .manager import (
    BillingManager,
    InvalidPlanError,
    MissingApprovalLinkError,
    MissingSubscriptionIdError,
    SubscriptionCheckout,
    WebhookNotVerifiedError,
)
from .paypal_service import PayPalAPIError, PayPalBillingService, PayPalError
from .plans import PlanCatalog, PlanCode, SubscriptionStatus
from .providers import (
    BillingProvider,
    ProviderNotConfiguredError,
    build_billing_provider,
)
from .webhooks import WebhookEvent, WebhookOutcome, apply_webhook_event

__all__ = [
    "BillingManager",
    "InvalidPlanError",
    "MissingApprovalLinkError",
    "MissingSubscriptionIdError",
    "SubscriptionCheckout",
    "WebhookNotVerifiedError",
    "PayPalAPIError",
    "PayPalBillingService",
    "PayPalError",
    "PlanCatalog",
    "PlanCode",
    "SubscriptionStatus",
    "BillingProvider",
    "ProviderNotConfiguredError",
    "build_billing_provider",
    "WebhookEvent",
    "WebhookOutcome",
    "apply_webhook_event",
]
