"""Marketplace account."""
from datetime import datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

USER_STATUS_ACTIVE = "active"
USER_STATUS_SUSPENDED = "suspended"


class User(Base):
    """An account; the same user can list products and buy other sellers' products."""

    __tablename__ = "users"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Stored lowercased by the auth schemas
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=USER_STATUS_ACTIVE)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Child rows go with the account via ON DELETE CASCADE
    products: Mapped[list["Product"]] = relationship(
        "Product", back_populates="seller", cascade="all, delete-orphan", passive_deletes=True
    )
    purchases: Mapped[list["Purchase"]] = relationship(
        "Purchase", back_populates="buyer", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(
            f"status IN ('{USER_STATUS_ACTIVE}', '{USER_STATUS_SUSPENDED}')",
            name="ck_user_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<User(uuid={self.uuid}, email={self.email}, status={self.status})>"
