"""Provider abstraction for handling billing operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping


class ProviderNotConfiguredError(RuntimeError):
    """Raised when a billing provider is missing required configuration."""


class BillingProvider(ABC):
    """Interface for payment providers that bill through hosted subscriptions."""

    key: str

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the provider has the secrets it needs."""

    @abstractmethod
    def create_subscription(
        self,
        *,
        plan_id: str,
        custom_id: str,
        return_url: str,
        cancel_url: str,
    ) -> Dict[str, Any]:
        """Create a subscription awaiting buyer approval."""

    @abstractmethod
    def verify_webhook(self, headers: Mapping[str, str], event: Any) -> bool:
        """Confirm with the provider that the webhook delivery is authentic."""
