"""Stripe payment operations"""

from .stripe_service import StripeService
from .webhook_handler import handle_stripe_webhook

__all__ = ['StripeService', 'handle_stripe_webhook']
