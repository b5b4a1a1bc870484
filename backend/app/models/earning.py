"""Earning model: the commission split recorded when a purchase settles."""
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import String, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Earning(Base):
    """Immutable ledger entry, one per paid purchase.

    Written only by settlement (or the free-product fast path).
    ``platform_fee + seller_amount == total_amount`` for every row.
    """
    __tablename__ = "earnings"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    purchase_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("purchases.uuid", ondelete="CASCADE"), nullable=False, unique=True
    )
    seller_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    platform_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    seller_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    purchase = relationship("Purchase", back_populates="earning", foreign_keys=[purchase_id])
    seller = relationship("User", foreign_keys=[seller_id])

    __table_args__ = (
        Index("idx_earning_seller_id", "seller_id"),
    )

    def __repr__(self) -> str:
        return f"<Earning(uuid={self.uuid}, purchase_id={self.purchase_id}, seller_id={self.seller_id})>"
