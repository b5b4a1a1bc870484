"""Schemas for purchase initiation and payment webhooks."""
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field


class CreateOrderRequest(BaseModel):
    """Request to start purchasing a product."""

    product_id: UUID = Field(..., description="UUID of the product to purchase")


class CreateOrderResponse(BaseModel):
    """Either a free acquisition or a gateway order the client must pay."""

    free: bool = Field(..., description="True when the product was free and is already owned")
    purchase_id: str
    message: Optional[str] = None
    order_id: Optional[str] = Field(None, description="Gateway order reference")
    amount: Optional[int] = Field(None, description="Amount in minor currency units")
    currency: Optional[str] = None
    key: Optional[str] = Field(None, description="Gateway publishable key")


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the gateway."""

    status: str = Field(..., description="ignored | already_processed | success")
    purchase_id: Optional[str] = None
    event: Optional[str] = None
