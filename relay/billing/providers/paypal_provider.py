"""PayPal implementation of the billing provider interface."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import requests

from relay.config import Settings

from ..paypal_service import PayPalBillingService
from .base import BillingProvider, ProviderNotConfiguredError


class PayPalBillingProvider(BillingProvider):
    key = "paypal"

    def __init__(self, settings: Settings, *, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._session = session
        self._service: Optional[PayPalBillingService] = None

    def is_configured(self) -> bool:
        return bool(self._settings.paypal_client_id and self._settings.paypal_client_secret)

    def _ensure_service(self) -> PayPalBillingService:
        if not self.is_configured():
            raise ProviderNotConfiguredError("Missing PAYPAL_CLIENT_ID or PAYPAL_CLIENT_SECRET")
        if self._service is None:
            self._service = PayPalBillingService(
                self._settings.paypal_client_id,
                self._settings.paypal_client_secret,
                base_url=self._settings.paypal_base_url,
                webhook_id=self._settings.paypal_webhook_id,
                timeout=self._settings.request_timeout,
                session=self._session,
            )
        return self._service

    def create_subscription(
        self,
        *,
        plan_id: str,
        custom_id: str,
        return_url: str,
        cancel_url: str,
    ) -> Dict[str, Any]:
        service = self._ensure_service()
        return service.create_subscription(
            plan_id=plan_id,
            custom_id=custom_id,
            return_url=return_url,
            cancel_url=cancel_url,
            brand_name=self._settings.paypal_brand_name,
            locale=self._settings.paypal_locale,
        )

    def verify_webhook(self, headers: Mapping[str, str], event: Any) -> bool:
        if not self._settings.paypal_webhook_id:
            raise ProviderNotConfiguredError("Missing PAYPAL_WEBHOOK_ID")
        service = self._ensure_service()
        return service.verify_webhook_signature(headers, event)


__all__ = ["PayPalBillingProvider"]
