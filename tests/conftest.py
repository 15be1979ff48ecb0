"""
Fixtures shared by the billing server tests.
"""

import hashlib
import hmac
import time
from typing import Optional, Dict, Any

import pytest
import stripe
from fastapi.testclient import TestClient

from billing.config import Settings
from billing.server import create_app, get_stripe_service

WEBHOOK_SECRET = "whsec_test_secret"


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a stripe-signature header the way Stripe does."""
    timestamp = timestamp or int(time.time())
    signed_payload = f"{timestamp}.{payload.decode('utf-8')}"
    signature = hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def no_such(resource: str, reference: str, param: str = "id") -> stripe.InvalidRequestError:
    return stripe.InvalidRequestError(
        f"No such {resource}: '{reference}'",
        param,
        code="resource_missing",
        http_status=404,
    )


class FakeStripeService:
    """In-memory stand-in for StripeService mirroring Stripe's behaviour."""

    def __init__(self, prices=("price_123", "price_456")):
        self.prices = set(prices)
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.subscriptions: Dict[str, Dict[str, Any]] = {
            "sub_123": {"id": "sub_123", "object": "subscription", "status": "active"},
        }
        self.customers: Dict[str, Dict[str, Any]] = {
            "cus_123": {"id": "cus_123", "object": "customer", "email": "jenny@example.com"},
        }
        self.calls = []

    async def retrieve_checkout_session(self, session_id):
        self.calls.append(("retrieve_checkout_session", session_id))
        if session_id not in self.sessions:
            raise no_such("checkout.session", session_id, "session")
        return self.sessions[session_id]

    async def create_checkout_session(self, price_id):
        self.calls.append(("create_checkout_session", price_id))
        if price_id not in self.prices:
            raise stripe.InvalidRequestError(
                f"No such price: '{price_id}'",
                "line_items[0][price]",
                code="resource_missing",
                http_status=400,
            )
        session_id = "cs_test_abc" if not self.sessions else f"cs_test_{len(self.sessions)}"
        self.sessions[session_id] = {
            "id": session_id,
            "object": "checkout.session",
            "mode": "subscription",
            "payment_status": "unpaid",
            "line_items": {"data": [{"price": {"id": price_id}, "quantity": 1}]},
        }
        return self.sessions[session_id]

    async def cancel_subscription(self, subscription_id):
        self.calls.append(("cancel_subscription", subscription_id))
        subscription = self.subscriptions.get(subscription_id)
        if subscription is None or subscription["status"] == "canceled":
            raise no_such("subscription", subscription_id)
        subscription["status"] = "canceled"
        return dict(subscription)

    async def retrieve_subscription(self, subscription_id):
        self.calls.append(("retrieve_subscription", subscription_id))
        if subscription_id not in self.subscriptions:
            raise no_such("subscription", subscription_id)
        return self.subscriptions[subscription_id]

    async def retrieve_customer(self, customer_id):
        self.calls.append(("retrieve_customer", customer_id))
        if customer_id not in self.customers:
            raise no_such("customer", customer_id)
        return self.customers[customer_id]

    async def create_portal_session(self, customer_id):
        self.calls.append(("create_portal_session", customer_id))
        if customer_id not in self.customers:
            raise no_such("customer", customer_id, "customer")
        return {"id": "bps_123", "object": "billing_portal.session", "url": "https://billing.stripe.com/p/session/test_123"}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        domain="https://shop.example.com",
        stripe_secret_key="sk_test_123",
        stripe_publishable_key="pk_test_123",
        basic_price_id="price_basic",
        pro_price_id="price_pro",
    )


@pytest.fixture
def signed_settings(settings) -> Settings:
    return settings.model_copy(update={"stripe_webhook_secret": WEBHOOK_SECRET})


@pytest.fixture
def fake_stripe() -> FakeStripeService:
    return FakeStripeService()


def _client_for(settings: Settings, fake_stripe: FakeStripeService) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[get_stripe_service] = lambda: fake_stripe
    return TestClient(app)


@pytest.fixture
def client(settings, fake_stripe) -> TestClient:
    return _client_for(settings, fake_stripe)


@pytest.fixture
def signed_client(signed_settings, fake_stripe) -> TestClient:
    return _client_for(signed_settings, fake_stripe)
