"""Settlement processor: turns verified payment webhooks into paid purchases.

This is the only path by which a paid-path purchase becomes ``paid``.
Processing order for one delivery:

1. Verify the signature over the raw request bytes. Nothing is parsed
   before this succeeds.
2. Parse the event; anything other than a captured payment is ignored.
3. Conditionally flip the matching purchase from ``pending`` to ``paid``.
   If no row matches (already settled, or an order we never issued) the
   delivery is acknowledged as ``already_processed``.
4. Compute the commission split and write the earnings row in the same
   transaction as the status change.

Gateways retry deliveries, so every step after (1) is safe to repeat.
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from app.services.commission import split_commission
from app.services.errors import InvalidSignature, ValidationFailed
from app.services.gateway import PaymentGateway, PAYMENT_CAPTURED_EVENT
from app.services.ledger import LedgerStore

logger = logging.getLogger(__name__)

RESULT_IGNORED = "ignored"
RESULT_ALREADY_PROCESSED = "already_processed"
RESULT_SUCCESS = "success"


@dataclass
class SettlementResult:
    status: str
    purchase_id: Optional[str] = None
    event: Optional[str] = None

    def as_dict(self) -> dict:
        body = {"status": self.status}
        if self.purchase_id:
            body["purchase_id"] = self.purchase_id
        if self.event:
            body["event"] = self.event
        return body


@dataclass
class CapturedPayment:
    order_id: str
    payment_id: str


def parse_captured_payment(event: dict) -> CapturedPayment:
    """Pull the order and payment references out of a captured-payment event.

    The order reference is the PaymentIntent id; the payment reference is its
    latest charge, falling back to the PaymentIntent id when the event
    predates charge expansion.
    """
    try:
        payment_intent = event["data"]["object"]
        order_id = payment_intent["id"]
    except (KeyError, TypeError):
        raise ValidationFailed("Malformed payment event")

    if not isinstance(order_id, str) or not order_id:
        raise ValidationFailed("Malformed payment event")

    payment_id = payment_intent.get("latest_charge") or order_id
    if isinstance(payment_id, dict):
        payment_id = payment_id.get("id") or order_id
    if not isinstance(payment_id, str):
        payment_id = order_id
    return CapturedPayment(order_id=order_id, payment_id=payment_id)


class SettlementProcessor:
    """Consumes gateway webhooks and records the commission ledger entry."""

    def __init__(
        self,
        ledger: LedgerStore,
        gateway: PaymentGateway,
        webhook_secret: str,
        commission_rate: float,
    ):
        self.ledger = ledger
        self.gateway = gateway
        self.webhook_secret = webhook_secret
        self.commission_rate = commission_rate

    async def handle_payment_confirmation(self, raw_body: bytes, signature: str) -> SettlementResult:
        """Verify and apply one webhook delivery.

        *raw_body* must be the request body exactly as received.

        Raises InvalidSignature when authentication fails and ValidationFailed
        when a verified body is not a usable event.
        """
        if not self.gateway.verify_signature(raw_body, signature, self.webhook_secret):
            logger.warning("Rejected payment webhook with invalid signature")
            raise InvalidSignature()

        try:
            event = json.loads(raw_body)
        except ValueError:
            raise ValidationFailed("Invalid payload")
        if not isinstance(event, dict):
            raise ValidationFailed("Invalid payload")

        event_type = event.get("type")
        if event_type != PAYMENT_CAPTURED_EVENT:
            logger.info(f"Ignoring payment webhook event {event_type}")
            return SettlementResult(status=RESULT_IGNORED, event=event_type)

        payment = parse_captured_payment(event)

        try:
            row = await self.ledger.mark_paid_if_pending(payment.order_id, payment.payment_id)
            if row is None:
                await self.ledger.rollback()
                logger.info(f"Order {payment.order_id} already processed or unknown")
                return SettlementResult(status=RESULT_ALREADY_PROCESSED)

            purchase_id, product_id, amount = row
            seller_id = await self.ledger.get_seller_id(product_id)
            split = split_commission(amount, self.commission_rate)
            await self.ledger.add_earning(purchase_id, seller_id, split)
            await self.ledger.commit()
        except IntegrityError:
            # A concurrent delivery wrote the earnings row first
            await self.ledger.rollback()
            logger.info(f"Order {payment.order_id} settled by a concurrent delivery")
            return SettlementResult(status=RESULT_ALREADY_PROCESSED)
        except Exception:
            await self.ledger.rollback()
            raise

        logger.info(
            f"Purchase {purchase_id} paid via order {payment.order_id}: "
            f"total={split.total_amount} fee={split.platform_fee} seller={split.seller_amount}"
        )
        return SettlementResult(status=RESULT_SUCCESS, purchase_id=purchase_id)
