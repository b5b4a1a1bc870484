"""Purchase model: one buyer's attempt to acquire one product."""
from datetime import datetime
from decimal import Decimal
from uuid import uuid4
from sqlalchemy import String, Numeric, DateTime, ForeignKey, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_FAILED = "failed"

PURCHASE_STATUSES = (STATUS_PENDING, STATUS_PAID, STATUS_FAILED)


class Purchase(Base):
    """Purchase record.

    At most one row exists per (buyer, product); the database enforces it so
    that concurrent checkouts cannot both insert. Free products are stored
    directly as ``paid`` with no gateway order.
    """

    __tablename__ = "purchases"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Foreign keys
    buyer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("products.uuid", ondelete="CASCADE"), nullable=False
    )

    # Gateway references (null for free products / until settled)
    gateway_order_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_PENDING, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    buyer: Mapped["User"] = relationship("User", back_populates="purchases", foreign_keys=[buyer_id])
    product: Mapped["Product"] = relationship("Product", back_populates="purchases", foreign_keys=[product_id])
    earning: Mapped["Earning | None"] = relationship(
        "Earning", back_populates="purchase", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )

    # Indexes
    __table_args__ = (
        UniqueConstraint("buyer_id", "product_id", name="uq_buyer_product"),
        CheckConstraint("status IN ('pending', 'paid', 'failed')", name="ck_purchase_status"),
        Index("idx_purchase_buyer_id", "buyer_id"),
        Index("idx_purchase_product_id", "product_id"),
        Index("idx_purchase_gateway_order_id", "gateway_order_id"),
    )

    def __repr__(self) -> str:
        return f"<Purchase(uuid={self.uuid}, buyer_id={self.buyer_id}, product_id={self.product_id}, status={self.status})>"
