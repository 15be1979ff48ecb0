"""Webhook handler for Stripe event notifications"""

import logging
from typing import Optional

import stripe
from fastapi import Request

from billing.config import Settings
from .models import WebhookEvent

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_COMPLETED = 'checkout.session.completed'
SUBSCRIPTION_DELETED = 'customer.subscription.deleted'


class WebhookRejected(ValueError):
    """Raised when a webhook request can't be trusted or parsed"""


def verify_signature(payload: bytes, signature: Optional[str], webhook_secret: str) -> None:
    """Check the stripe-signature header against the exact bytes Stripe signed"""
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode('utf-8'),
            signature or '',
            webhook_secret,
            stripe.Webhook.DEFAULT_TOLERANCE,
        )
    except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
        logger.warning("⚠️  Webhook signature verification failed.")
        raise WebhookRejected(str(e)) from e


def parse_event(payload: bytes) -> WebhookEvent:
    try:
        return WebhookEvent.model_validate_json(payload)
    except ValueError as e:
        logger.error(f"Error parsing webhook payload: {e}")
        raise WebhookRejected("Invalid event data") from e


def dispatch_event(event: WebhookEvent) -> None:
    """Log the event category; unknown types are accepted silently"""
    logger.info(event.type)

    if event.type == CHECKOUT_SESSION_COMPLETED:
        logger.info("🔔  Payment received!")

    elif event.type == SUBSCRIPTION_DELETED:
        logger.info("🔔  Subscription cancelled!")


async def handle_stripe_webhook(request: Request, settings: Settings) -> WebhookEvent:
    """Handle an incoming Stripe webhook

    The raw body captured by RawBodyMiddleware is used for both signature
    verification and parsing. Without a configured secret the body is trusted.
    """
    payload = getattr(request.state, 'raw_body', None)
    if payload is None:
        payload = await request.body()

    if settings.webhook_signing_enabled:
        signature = request.headers.get('stripe-signature')
        verify_signature(payload, signature, settings.stripe_webhook_secret)

    event = parse_event(payload)
    dispatch_event(event)
    return event
