"""Product model: a digital document listed for sale by one seller."""
from datetime import datetime
from decimal import Decimal
from uuid import uuid4
from sqlalchemy import String, BigInteger, Boolean, Numeric, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base

REVIEW_PENDING = "pending_review"
REVIEW_APPROVED = "approved"
REVIEW_REJECTED = "rejected"


class Product(Base):
    """Sellable document. Owned by its seller; referenced (never owned) by purchases."""

    __tablename__ = "products"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Owner
    seller_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False
    )

    # Listing info
    short_code: Mapped[str] = mapped_column(String(6), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    mrp: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    allow_download: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Storage key issued by the blob store at upload time
    file_path: Mapped[str | None] = mapped_column(String, nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    # Moderation flags
    review_status: Mapped[str] = mapped_column(String(20), default=REVIEW_PENDING, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    seller: Mapped["User"] = relationship("User", back_populates="products", foreign_keys=[seller_id])
    purchases: Mapped[list["Purchase"]] = relationship(
        "Purchase", back_populates="product", cascade="all, delete-orphan", passive_deletes=True
    )

    # Indexes
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        Index("idx_product_seller_id", "seller_id"),
    )

    @property
    def is_free(self) -> bool:
        return self.price == 0

    def __repr__(self) -> str:
        return f"<Product(uuid={self.uuid}, short_code={self.short_code}, price={self.price})>"
