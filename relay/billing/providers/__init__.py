"""Billing provider registry and helpers."""

from __future__ import annotations

from typing import Callable, Dict

from relay.config import Settings

from .base import BillingProvider, ProviderNotConfiguredError
from .paypal_provider import PayPalBillingProvider

_REGISTRY_FACTORIES: Dict[str, Callable[[Settings], BillingProvider]] = {
    "paypal": PayPalBillingProvider,
}


def build_billing_provider(settings: Settings, provider_key: str = "paypal") -> BillingProvider:
    key = (provider_key or "paypal").strip().lower()
    factory = _REGISTRY_FACTORIES.get(key)
    if factory is None:
        raise KeyError(f"Unknown billing provider: {provider_key}")
    return factory(settings)


__all__ = [
    "BillingProvider",
    "PayPalBillingProvider",
    "ProviderNotConfiguredError",
    "build_billing_provider",
]
