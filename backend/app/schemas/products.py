"""Schemas for product endpoints."""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    """Schema for listing a product. The file itself is uploaded to blob storage beforehand."""

    title: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    mrp: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Price in major units; 0 lists a free document")
    allow_download: bool = False
    file_path: Optional[str] = Field(None, max_length=1024, description="Storage key returned by the upload service")
    file_size: Optional[int] = Field(None, ge=0)


class ProductResponse(BaseModel):
    """Schema for product response (public metadata only)."""

    uuid: str
    seller_id: str
    short_code: str
    title: str
    description: Optional[str]
    mrp: Optional[Decimal]
    price: Decimal
    allow_download: bool
    review_status: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class PriceUpdate(BaseModel):
    """New price for an existing listing."""

    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class ProductDeleteResponse(BaseModel):
    message: str
    soft_deleted: bool


class ProductAccessResponse(BaseModel):
    """Short-lived link to the purchased document."""

    signed_url: str
    expires_in: int = Field(..., description="Seconds until the link expires")
    allow_download: bool
