"""Repository-wide pytest fixtures."""

from __future__ import annotations

import json
from collections.abc import Generator
from typing import Any, Dict, List, Mapping, Optional

import pytest

from relay.billing import BillingManager, PlanCatalog
from relay.billing.providers.base import BillingProvider
from relay.config import Settings
from relay.db.models import UpdateSet, UserRecord, apply_updates
from relay.services.openai import ChatService

PRO_PLAN_ID = "P-PRO-123"
PLUS_PLAN_ID = "P-PLUS-456"


@pytest.fixture(autouse=True)
def _set_default_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Give every test a minimal, valid environment."""

    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT", json.dumps({"type": "service_account", "project_id": "test"}))
    monkeypatch.setenv("PAYPAL_ENV", "sandbox")
    monkeypatch.setenv("PAYPAL_PLAN_ID_PRO", PRO_PLAN_ID)
    monkeypatch.setenv("PAYPAL_PLAN_ID_PLUS", PLUS_PLAN_ID)
    for name in ("OPENAI_API_KEY", "APP_BASE_URL", "CORS_ORIGIN", "PAYPAL_WEBHOOK_PRESERVE_IDS"):
        monkeypatch.delenv(name, raising=False)
    yield


class InMemoryUserStore:
    """Dict-backed stand-in for the Firestore accessor that records writes."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {uid: dict(data) for uid, data in (documents or {}).items()}
        self.writes: List[tuple[str, UpdateSet]] = []
        self.lookups: List[str] = []

    def get_user(self, uid: str) -> Optional[UserRecord]:
        data = self.documents.get(uid)
        return UserRecord(uid=uid, data=dict(data)) if data is not None else None

    def find_user_by_subscription_id(self, subscription_id: str) -> Optional[UserRecord]:
        self.lookups.append(subscription_id)
        for uid, data in self.documents.items():
            if data.get("paypalSubscriptionId") == subscription_id:
                return UserRecord(uid=uid, data=dict(data))
        return None

    def upsert_user(self, uid: str, updates: UpdateSet) -> Dict[str, Any]:
        self.writes.append((uid, updates))
        merged = apply_updates(self.documents.get(uid, {}), updates)
        merged["updatedAt"] = len(self.writes)
        self.documents[uid] = merged
        return merged


class StubBillingProvider(BillingProvider):
    key = "stub"

    def __init__(self, *, verified: bool = True, subscription: Optional[Dict[str, Any]] = None) -> None:
        self.verified = verified
        self.subscription = subscription or {
            "id": "I-SUB-1",
            "links": [{"rel": "approve", "href": "https://paypal.test/approve/I-SUB-1"}],
        }
        self.created: List[Dict[str, Any]] = []
        self.verifications: List[Any] = []

    def is_configured(self) -> bool:
        return True

    def create_subscription(self, **kwargs: Any) -> Dict[str, Any]:
        self.created.append(kwargs)
        return self.subscription

    def verify_webhook(self, headers: Mapping[str, str], event: Any) -> bool:
        self.verifications.append(event)
        return self.verified


class StubAuthManager:
    def __init__(self, users: Optional[Dict[str, str]] = None) -> None:
        self.users = users or {"good-token": "user-1"}

    def get_user_from_token(self, token: str) -> Optional[Dict[str, Any]]:
        uid = self.users.get(token)
        if not uid:
            return None
        return {"uid": uid, "email": f"{uid}@example.com", "claims": {"uid": uid}}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        firebase_service_account={"type": "service_account"},
        paypal_env="sandbox",
        paypal_client_id="client",
        paypal_client_secret="secret",
        paypal_webhook_id="WH-1",
        paypal_plan_ids={"PRO": PRO_PLAN_ID, "PLUS": PLUS_PLAN_ID},
    )


@pytest.fixture
def catalog() -> PlanCatalog:
    return PlanCatalog.from_config({"PRO": PRO_PLAN_ID, "PLUS": PLUS_PLAN_ID})


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def provider() -> StubBillingProvider:
    return StubBillingProvider()


@pytest.fixture
def billing_manager(store: InMemoryUserStore, provider: StubBillingProvider, catalog: PlanCatalog) -> BillingManager:
    return BillingManager(store, provider, catalog)


@pytest.fixture
def services(settings: Settings, store: InMemoryUserStore, billing_manager: BillingManager):
    from relay.api.dependencies import Services

    return Services(
        settings=settings,
        auth_manager=StubAuthManager(),
        billing=billing_manager,
        chat=ChatService(None),
    )


@pytest.fixture
def api_client(services):
    from fastapi.testclient import TestClient

    from relay.api.main import create_app

    return TestClient(create_app(services=services))


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": "Bearer good-token"}
