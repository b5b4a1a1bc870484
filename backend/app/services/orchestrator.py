"""Purchase orchestrator: starts a purchase on the free or paid path.

Free products settle immediately with a zero-valued earnings row. Paid
products get a gateway order and a ``pending`` purchase; they only become
``paid`` through a verified webhook (see ``settlement``).

Concurrency is left to the database. The (buyer, product) uniqueness
constraint decides which of two simultaneous checkouts wins; the loser gets
``PurchaseConflict`` and is not retried here, because a blind retry could
replace a checkout that is already being paid.
"""
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError

from app.models.purchase import STATUS_PAID, STATUS_PENDING
from app.services.commission import FREE_SPLIT, ZERO, to_decimal, to_minor_units
from app.services.errors import (
    AlreadyOwned,
    NotFound,
    PurchaseConflict,
    SelfPurchaseForbidden,
)
from app.services.gateway import PaymentGateway
from app.services.ledger import LedgerStore

logger = logging.getLogger(__name__)


@dataclass
class PurchaseOutcome:
    """Result of ``initiate_purchase``.

    ``free`` outcomes carry only ``purchase_id``; paid outcomes carry the
    gateway order and the amount in minor units.
    """

    purchase_id: str
    free: bool
    order_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    publishable_key: Optional[str] = None


class PurchaseOrchestrator:
    """Decides free vs paid path and manages the purchase row for a buyer/product pair."""

    def __init__(self, ledger: LedgerStore, gateway: PaymentGateway, currency: str):
        self.ledger = ledger
        self.gateway = gateway
        self.currency = currency

    async def initiate_purchase(self, buyer_id: str, product_id: str) -> PurchaseOutcome:
        """Start (or restart) checkout of *product_id* for *buyer_id*.

        Raises NotFound, SelfPurchaseForbidden, AlreadyOwned, PurchaseConflict
        or GatewayError. Commits on success, rolls back on any failure.
        """
        product = await self.ledger.get_product(product_id)
        if not product:
            raise NotFound("Product not found")

        if product.seller_id == buyer_id:
            raise SelfPurchaseForbidden()

        try:
            existing = await self.ledger.find_purchase(buyer_id, product_id)
            if existing:
                if existing.status == STATUS_PAID:
                    raise AlreadyOwned()
                # Abandoned checkout: drop it so the buyer can start over
                logger.info(
                    f"Discarding {existing.status} purchase {existing.uuid} "
                    f"for buyer {buyer_id} product {product_id}"
                )
                await self.ledger.delete_purchase(existing)

            price = to_decimal(product.price)
            if price == ZERO:
                outcome = await self._acquire_free(buyer_id, product.uuid, product.seller_id)
            else:
                outcome = await self._open_order(buyer_id, product.uuid, price)

            await self.ledger.commit()
        except IntegrityError:
            await self.ledger.rollback()
            logger.warning(f"Concurrent purchase detected for buyer {buyer_id} product {product_id}")
            raise PurchaseConflict()
        except Exception:
            await self.ledger.rollback()
            raise

        return outcome

    async def _acquire_free(self, buyer_id: str, product_id: str, seller_id: str) -> PurchaseOutcome:
        purchase = await self.ledger.add_purchase(
            buyer_id=buyer_id,
            product_id=product_id,
            amount=ZERO,
            status=STATUS_PAID,
        )
        await self.ledger.add_earning(purchase.uuid, seller_id, FREE_SPLIT)
        logger.info(f"Free product {product_id} acquired by {buyer_id} (purchase {purchase.uuid})")
        return PurchaseOutcome(purchase_id=purchase.uuid, free=True)

    async def _open_order(self, buyer_id: str, product_id: str, price: Decimal) -> PurchaseOutcome:
        amount_minor = to_minor_units(price)
        reference = f"purchase:{buyer_id}:{product_id}:{int(time.time() * 1000)}"

        # Gateway SDKs are blocking; keep the event loop free while they run
        order_id = await run_in_threadpool(
            self.gateway.create_order,
            amount_minor,
            self.currency,
            reference,
            metadata={"buyer_id": buyer_id, "product_id": product_id},
        )

        purchase = await self.ledger.add_purchase(
            buyer_id=buyer_id,
            product_id=product_id,
            amount=price,
            status=STATUS_PENDING,
            gateway_order_id=order_id,
        )
        logger.info(f"Pending purchase {purchase.uuid} opened with order {order_id} ({amount_minor} {self.currency})")
        return PurchaseOutcome(
            purchase_id=purchase.uuid,
            free=False,
            order_id=order_id,
            amount=amount_minor,
            currency=self.currency,
            publishable_key=self.gateway.publishable_key,
        )
