"""Ledger store: transactional access to products, purchases and earnings.

One ``LedgerStore`` wraps one ``AsyncSession`` and therefore one unit of
work. Nothing here commits implicitly; callers decide when a transition is
complete. Uniqueness violations propagate as ``IntegrityError``.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.models.product import Product
from app.models.purchase import Purchase, STATUS_PENDING, STATUS_PAID
from app.models.earning import Earning
from app.services.commission import CommissionSplit, to_decimal


class LedgerStore:
    """Purchase and earnings persistence for the orchestrator and settlement processor."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_product(self, product_id: str) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.uuid == product_id))
        return result.scalar_one_or_none()

    async def find_purchase(self, buyer_id: str, product_id: str) -> Optional[Purchase]:
        result = await self.db.execute(
            select(Purchase).where(
                Purchase.buyer_id == buyer_id,
                Purchase.product_id == product_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def has_paid_purchase(self, buyer_id: str, product_id: str) -> bool:
        result = await self.db.execute(
            select(Purchase.uuid).where(
                Purchase.buyer_id == buyer_id,
                Purchase.product_id == product_id,
                Purchase.status == STATUS_PAID,
            )
        )
        return result.scalar_one_or_none() is not None

    async def delete_product_if_unsold(self, product_id: str) -> bool:
        """Delete the product unless some purchase of it is paid.

        The paid-purchase check and the delete are one statement, so a sale
        settling concurrently cannot be cascaded away. Returns True when the
        row was deleted.
        """
        paid = (
            select(Purchase.uuid)
            .where(Purchase.product_id == product_id, Purchase.status == STATUS_PAID)
            .exists()
        )
        result = await self.db.execute(
            delete(Product)
            .where(Product.uuid == product_id, ~paid)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete_purchase(self, purchase: Purchase) -> None:
        await self.db.delete(purchase)
        # Flush now so the replacement row does not collide with it
        await self.db.flush()

    async def add_purchase(
        self,
        buyer_id: str,
        product_id: str,
        amount: Decimal,
        status: str,
        gateway_order_id: Optional[str] = None,
    ) -> Purchase:
        """Insert a purchase and flush so uniqueness is checked immediately."""
        purchase = Purchase(
            buyer_id=buyer_id,
            product_id=product_id,
            amount=amount,
            status=status,
            gateway_order_id=gateway_order_id,
        )
        self.db.add(purchase)
        await self.db.flush()
        return purchase

    async def mark_paid_if_pending(self, gateway_order_id: str, gateway_payment_id: str):
        """Move the pending purchase for *gateway_order_id* to paid.

        Single conditional UPDATE: only one concurrent caller can match the
        ``status = 'pending'`` predicate. Returns ``(uuid, product_id, amount)``
        for the updated row, or None when nothing matched.
        """
        result = await self.db.execute(
            update(Purchase)
            .where(
                Purchase.gateway_order_id == gateway_order_id,
                Purchase.status == STATUS_PENDING,
            )
            .values(
                status=STATUS_PAID,
                gateway_payment_id=gateway_payment_id,
                updated_at=datetime.utcnow(),
            )
            .returning(Purchase.uuid, Purchase.product_id, Purchase.amount)
            .execution_options(synchronize_session=False)
        )
        return result.first()

    async def get_seller_id(self, product_id: str) -> Optional[str]:
        result = await self.db.execute(select(Product.seller_id).where(Product.uuid == product_id))
        return result.scalar_one_or_none()

    async def add_earning(self, purchase_id: str, seller_id: str, split: CommissionSplit) -> Earning:
        earning = Earning(
            purchase_id=purchase_id,
            seller_id=seller_id,
            total_amount=split.total_amount,
            platform_fee=split.platform_fee,
            seller_amount=split.seller_amount,
        )
        self.db.add(earning)
        await self.db.flush()
        return earning

    async def list_purchases_for_buyer(self, buyer_id: str):
        """Buyer's purchases with product title and seller name, newest first."""
        result = await self.db.execute(
            select(Purchase, Product.title, Product.allow_download, User.name.label("seller_name"))
            .join(Product, Product.uuid == Purchase.product_id)
            .join(User, User.uuid == Product.seller_id)
            .where(Purchase.buyer_id == buyer_id)
            .order_by(desc(Purchase.created_at))
            # Status may have moved under a conditional UPDATE in this session
            .execution_options(populate_existing=True)
        )
        return result.all()

    async def list_earnings_for_seller(self, seller_id: str):
        """Seller's earnings rows with product title, newest first."""
        result = await self.db.execute(
            select(Earning, Product.uuid.label("product_id"), Product.title)
            .join(Purchase, Purchase.uuid == Earning.purchase_id)
            .join(Product, Product.uuid == Purchase.product_id)
            .where(Earning.seller_id == seller_id)
            .order_by(desc(Earning.created_at))
        )
        return result.all()

    async def earnings_totals(self, seller_id: str) -> tuple[Decimal, Decimal]:
        """Return ``(seller_total, platform_fee_total)`` across all earnings."""
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(Earning.seller_amount), 0),
                func.coalesce(func.sum(Earning.platform_fee), 0),
            ).where(Earning.seller_id == seller_id)
        )
        seller_total, fee_total = result.one()
        return to_decimal(seller_total), to_decimal(fee_total)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
