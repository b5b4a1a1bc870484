"""Payment gateway client.

Orders are Stripe PaymentIntents: the PaymentIntent id is the external order
reference stored on a pending purchase, and the charge id reported on
``payment_intent.succeeded`` is the external payment reference.
"""
import logging
from typing import Optional

import stripe

from app.config import settings
from app.services.errors import GatewayError

logger = logging.getLogger(__name__)

# Event type that settles a purchase
PAYMENT_CAPTURED_EVENT = "payment_intent.succeeded"

SIGNATURE_HEADER = "stripe-signature"


class PaymentGateway:
    """Capabilities the purchase pipeline needs from a payment processor."""

    publishable_key: Optional[str] = None

    def create_order(
        self,
        amount_minor_units: int,
        currency: str,
        reference: str,
        metadata: Optional[dict] = None,
    ) -> str:
        """Create a remote order and return its external id."""
        raise NotImplementedError

    def verify_signature(self, raw_body: bytes, signature: str, secret: str) -> bool:
        """Return True when *signature* authenticates the exact *raw_body* bytes."""
        raise NotImplementedError


class StripeGateway(PaymentGateway):
    """``PaymentGateway`` backed by the Stripe SDK."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        publishable_key: Optional[str] = None,
        tolerance: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.publishable_key = publishable_key if publishable_key is not None else settings.STRIPE_PUBLISHABLE_KEY
        self.tolerance = tolerance if tolerance is not None else settings.WEBHOOK_TOLERANCE_SECONDS

    def create_order(
        self,
        amount_minor_units: int,
        currency: str,
        reference: str,
        metadata: Optional[dict] = None,
    ) -> str:
        if amount_minor_units <= 0:
            raise GatewayError("Order amount must be positive")

        try:
            payment_intent = stripe.PaymentIntent.create(
                amount=amount_minor_units,
                currency=currency,
                metadata={"reference": reference, **(metadata or {})},
                idempotency_key=reference,
                api_key=self.api_key,
            )
        except stripe.error.StripeError as e:
            logger.error(f"Stripe order creation failed for {reference}: {e}")
            raise GatewayError()

        logger.info(f"Created Stripe order {payment_intent.id} for {reference} ({amount_minor_units} {currency})")
        return payment_intent.id

    def verify_signature(self, raw_body: bytes, signature: str, secret: str) -> bool:
        # verify_header recomputes HMAC-SHA256 over "<timestamp>.<raw body>"
        # and compares with hmac.compare_digest
        if not signature or not secret:
            return False
        try:
            payload = raw_body.decode("utf-8")
        except UnicodeDecodeError:
            return False
        try:
            stripe.WebhookSignature.verify_header(
                payload, signature, secret, tolerance=self.tolerance or None
            )
        except stripe.error.SignatureVerificationError:
            return False
        return True
