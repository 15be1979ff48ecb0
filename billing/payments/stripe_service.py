"""Stripe service forwarding checkout, subscription, customer and portal calls"""

import asyncio
import logging
from typing import Optional, Dict, Any

import stripe

from billing.config import Settings

# Stripe substitutes the real session id on redirect
CHECKOUT_SESSION_ID_PLACEHOLDER = '{CHECKOUT_SESSION_ID}'


def provider_error_message(error: stripe.StripeError) -> str:
    """Message reported by Stripe, without the request id prefix"""
    return error.user_message or str(error)


class StripeService:
    """Service forwarding billing operations to the Stripe API

    Every method makes exactly one call to Stripe and returns the object
    Stripe sent back as a plain dict. Stripe errors propagate unchanged.
    """

    def __init__(self, settings: Settings, client: Optional[stripe.StripeClient] = None):
        self.settings = settings
        self.client = client or stripe.StripeClient(settings.stripe_secret_key)
        self.logger = logging.getLogger(__name__)

    async def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        """Fetch a Checkout Session to display on the success page"""
        session = await asyncio.to_thread(
            lambda: self.client.v1.checkout.sessions.retrieve(session_id)
        )
        return self._to_dict(session)

    async def create_checkout_session(self, price_id: str) -> Dict[str, Any]:
        """Create a subscription-mode Checkout Session for a single price"""
        domain = self.settings.domain
        params = {
            'mode': 'subscription',
            'payment_method_types': ['card'],
            'client_reference_id': self.settings.client_reference_id,
            'line_items': [
                {
                    'price': price_id,
                    'quantity': 1,
                },
            ],
            'success_url': f"{domain}/success.html?session_id={CHECKOUT_SESSION_ID_PLACEHOLDER}",
            'cancel_url': f"{domain}/canceled.html",
        }

        session = await asyncio.to_thread(
            lambda: self.client.v1.checkout.sessions.create(params=params)
        )
        self.logger.info(f"Created checkout session {session.id} for price {price_id}")
        return self._to_dict(session)

    async def cancel_subscription(self, subscription_id: str) -> Dict[str, Any]:
        deleted_subscription = await asyncio.to_thread(
            lambda: self.client.v1.subscriptions.cancel(subscription_id)
        )
        return self._to_dict(deleted_subscription)

    async def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        subscription = await asyncio.to_thread(
            lambda: self.client.v1.subscriptions.retrieve(subscription_id)
        )
        return self._to_dict(subscription)

    async def retrieve_customer(self, customer_id: str) -> Dict[str, Any]:
        customer = await asyncio.to_thread(
            lambda: self.client.v1.customers.retrieve(customer_id)
        )
        return self._to_dict(customer)

    async def create_portal_session(self, customer_id: str) -> Dict[str, Any]:
        """Create a billing portal session returning the customer to the domain"""
        params = {
            'customer': customer_id,
            'return_url': self.settings.domain,
        }

        session = await asyncio.to_thread(
            lambda: self.client.v1.billing_portal.sessions.create(params=params)
        )
        return self._to_dict(session)

    @staticmethod
    def _to_dict(stripe_object: stripe.StripeObject) -> Dict[str, Any]:
        return stripe_object.to_dict(recursive=True)
