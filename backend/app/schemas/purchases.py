"""Schemas for purchase history and seller earnings."""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel


class PurchaseResponse(BaseModel):
    """One row of the buyer's library."""

    purchase_id: str
    product_id: str
    title: str
    seller_name: str
    allow_download: bool
    status: str
    amount: Decimal
    created_at: datetime


class EarningResponse(BaseModel):
    """One settled sale from the seller's point of view."""

    uuid: str
    purchase_id: str
    product_id: str
    product_title: str
    total_amount: Decimal
    platform_fee: Decimal
    seller_amount: Decimal
    created_at: datetime


class EarningsSummaryResponse(BaseModel):
    """Seller earnings with lifetime totals."""

    total_earned: Decimal
    total_platform_fee: Decimal
    sales_count: int
    items: list[EarningResponse]
    last_sale_at: Optional[datetime] = None
