"""Thin wrapper around the PayPal REST API used for subscription management."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import requests

logger = logging.getLogger(__name__)

SIGNATURE_HEADERS = {
    "auth_algo": "paypal-auth-algo",
    "cert_url": "paypal-cert-url",
    "transmission_id": "paypal-transmission-id",
    "transmission_sig": "paypal-transmission-sig",
    "transmission_time": "paypal-transmission-time",
}


class PayPalError(RuntimeError):
    """Raised when PayPal cannot be reached or refuses our client credentials."""


class PayPalAPIError(PayPalError):
    """Raised when a PayPal API call answers with a non-success status."""

    def __init__(self, message: str, *, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PayPalBillingService:
    """Handles the PayPal calls required for hosted subscriptions."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        base_url: str,
        webhook_id: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not client_id or not client_secret:
            raise ValueError("Missing PAYPAL_CLIENT_ID or PAYPAL_CLIENT_SECRET")
        self._client_id = client_id
        self._client_secret = client_secret
        self._webhook_id = webhook_id
        self._timeout = timeout
        self._session = session or requests.Session()
        self.base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------
    def get_access_token(self) -> str:
        """Fetch a client-credentials token. Tokens are not cached."""

        response = self._post(
            "/v1/oauth2/token",
            auth=(self._client_id, self._client_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data="grant_type=client_credentials",
        )
        data = _json_body(response)
        if not response.ok:
            logger.error("PayPal token request failed with status %s", response.status_code)
            raise PayPalError(data.get("error_description") or "PayPal auth error")
        token = data.get("access_token")
        if not token:
            raise PayPalError("PayPal auth error: no access token returned")
        return token

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def create_subscription(
        self,
        *,
        plan_id: str,
        custom_id: str,
        return_url: str,
        cancel_url: str,
        brand_name: str,
        locale: str,
    ) -> Dict[str, Any]:
        """Create a subscription awaiting buyer approval and return PayPal's payload."""

        token = self.get_access_token()
        response = self._post(
            "/v1/billing/subscriptions",
            headers=_bearer(token),
            json={
                "plan_id": plan_id,
                "custom_id": custom_id,
                "application_context": {
                    "brand_name": brand_name,
                    "locale": locale,
                    "user_action": "SUBSCRIBE_NOW",
                    "return_url": return_url,
                    "cancel_url": cancel_url,
                },
            },
        )
        data = _json_body(response)
        if not response.ok:
            raise PayPalAPIError(data.get("message") or "PayPal error", status_code=response.status_code)
        return data

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------
    def verify_webhook_signature(self, headers: Mapping[str, str], event: Any) -> bool:
        """Ask PayPal whether ``event`` was signed for our webhook id."""

        if not self._webhook_id:
            raise RuntimeError("Missing PAYPAL_WEBHOOK_ID")

        token = self.get_access_token()
        payload: Dict[str, Any] = {key: headers.get(header) for key, header in SIGNATURE_HEADERS.items()}
        payload["webhook_id"] = self._webhook_id
        payload["webhook_event"] = event

        response = self._post(
            "/v1/notifications/verify-webhook-signature",
            headers=_bearer(token),
            json=payload,
        )
        data = _json_body(response)
        if not response.ok:
            raise PayPalAPIError(
                data.get("message") or "PayPal webhook verify error",
                status_code=response.status_code,
            )
        verified = data.get("verification_status") == "SUCCESS"
        if not verified:
            logger.warning(
                "PayPal rejected webhook signature (transmission %s): %s",
                headers.get("paypal-transmission-id"),
                data.get("verification_status"),
            )
        return verified

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _post(self, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self._session.post(url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("PayPal request to %s failed: %s", path, exc)
            raise PayPalError(f"PayPal request failed: {exc}") from exc


def _bearer(token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


def _json_body(response: requests.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def find_approval_url(subscription: Mapping[str, Any]) -> Optional[str]:
    """Return the buyer approval link from a created subscription, if any."""

    for link in subscription.get("links") or []:
        if isinstance(link, dict) and link.get("rel") == "approve" and link.get("href"):
            return link["href"]
    return None
