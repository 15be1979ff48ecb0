"""FastAPI server forwarding billing operations to Stripe"""

import logging
from pathlib import Path
from typing import Optional

import stripe
from fastapi import FastAPI, Request, Depends, Query
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from billing.config import Settings
from billing.middleware import RawBodyMiddleware
from billing.payments import StripeService, handle_stripe_webhook
from billing.payments.models import (
    CheckoutSessionCreated,
    CreateCheckoutSessionRequest,
    CustomerPortalRequest,
    CustomerPortalSession,
    ErrorEnvelope,
    SetupInfo,
)
from billing.payments.stripe_service import provider_error_message
from billing.payments.webhook_handler import WebhookRejected

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

WEBHOOK_PATH = '/webhook'


def get_settings(request: Request) -> Settings:
    """Get the settings the app was created with"""
    return request.app.state.settings


def get_stripe_service(request: Request) -> StripeService:
    """Get the Stripe service shared by all requests"""
    return request.app.state.stripe_service


async def stripe_error_handler(request: Request, exc: stripe.StripeError) -> JSONResponse:
    """Answer a Stripe-reported failure with 400 and Stripe's message

    Failures Stripe never answered (no HTTP status, e.g. network errors)
    are re-raised and end up as a 500.
    """
    if exc.http_status is None:
        raise exc

    logger.warning(f"Stripe error on {request.url.path}: {exc}")
    envelope = ErrorEnvelope.from_message(provider_error_message(exc))
    return JSONResponse(content=envelope.model_dump(), status_code=400)


def create_app(settings: Optional[Settings] = None, stripe_service: Optional[StripeService] = None) -> FastAPI:
    """Create the billing API

    Args:
        settings: Server configuration, read from the environment when omitted
        stripe_service: Stripe service to use, built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings.from_env()

    app = FastAPI(title="Subscription Billing Server", version="1.0.0")
    app.state.settings = settings
    app.state.stripe_service = stripe_service or StripeService(settings)

    app.add_middleware(RawBodyMiddleware, path_prefix=WEBHOOK_PATH)
    app.add_exception_handler(stripe.StripeError, stripe_error_handler)

    @app.get("/")
    async def root(settings: Settings = Depends(get_settings)):
        """Entry page, or a service description when no static dir is set"""
        if settings.static_dir:
            index = Path(settings.static_dir) / 'index.html'
            if index.is_file():
                return FileResponse(index)

        return {
            "message": "Subscription Billing Server",
            "endpoints": {
                "setup": "/setup",
                "create_checkout_session": "/create-checkout-session",
                "checkout_session": "/checkout-session",
                "subscription": "/subscription",
                "cancel_subscription": "/cancel-subscription",
                "customer": "/customer",
                "customer_portal": "/customer-portal",
                "stripe_webhook": WEBHOOK_PATH,
                "health": "/health",
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "billing"}

    @app.get("/checkout-session")
    async def checkout_session(
        session_id: str = Query(..., alias="sessionId"),
        stripe_service: StripeService = Depends(get_stripe_service),
    ):
        """Fetch the Checkout Session to display the JSON result on the success page"""
        return await stripe_service.retrieve_checkout_session(session_id)

    @app.post("/create-checkout-session", response_model=CheckoutSessionCreated)
    async def create_checkout_session(
        data: CreateCheckoutSessionRequest,
        stripe_service: StripeService = Depends(get_stripe_service),
    ):
        try:
            session = await stripe_service.create_checkout_session(data.priceId)
        except stripe.StripeError as e:
            logger.warning(f"Checkout session creation failed for price {data.priceId}: {e}")
            envelope = ErrorEnvelope.from_message(provider_error_message(e))
            return JSONResponse(content=envelope.model_dump(), status_code=400)

        return CheckoutSessionCreated(sessionId=session['id'])

    @app.get("/cancel-subscription")
    async def cancel_subscription(
        subscription_id: str = Query(..., alias="subscriptionId"),
        stripe_service: StripeService = Depends(get_stripe_service),
    ):
        return await stripe_service.cancel_subscription(subscription_id)

    @app.get("/subscription")
    async def subscription(
        subscription_id: str = Query(..., alias="subscriptionId"),
        stripe_service: StripeService = Depends(get_stripe_service),
    ):
        return await stripe_service.retrieve_subscription(subscription_id)

    @app.get("/customer")
    async def customer(
        customer_id: str = Query(..., alias="customerId"),
        stripe_service: StripeService = Depends(get_stripe_service),
    ):
        return await stripe_service.retrieve_customer(customer_id)

    @app.get("/setup", response_model=SetupInfo)
    async def setup(settings: Settings = Depends(get_settings)):
        """Publishable key and price ids for the checkout page"""
        return SetupInfo(
            publishableKey=settings.stripe_publishable_key,
            basicPrice=settings.basic_price_id,
            proPrice=settings.pro_price_id,
        )

    @app.post("/customer-portal", response_model=CustomerPortalSession)
    async def customer_portal(
        data: CustomerPortalRequest,
        stripe_service: StripeService = Depends(get_stripe_service),
    ):
        """Billing portal session for an existing Stripe customer"""
        session = await stripe_service.create_portal_session(data.customerId)
        return CustomerPortalSession(url=session['url'])

    @app.post(WEBHOOK_PATH)
    async def stripe_webhook_endpoint(
        request: Request,
        settings: Settings = Depends(get_settings),
    ):
        """Stripe webhook endpoint"""
        try:
            await handle_stripe_webhook(request, settings)
        except WebhookRejected:
            return Response(status_code=400)

        return Response(status_code=200)

    # Registered last so the routes above take precedence
    if settings.static_dir and Path(settings.static_dir).is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir), name="static")

    return app
