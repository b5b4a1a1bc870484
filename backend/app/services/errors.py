"""Domain errors raised by the marketplace services.

Each error is an ``HTTPException`` so routers can let it propagate and
FastAPI renders the status code and detail directly.
"""
from typing import Optional

from fastapi import HTTPException, status


class MarketplaceError(HTTPException):
    """Base class; subclasses pin the HTTP status."""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.http_status,
            detail=detail or self.default_detail,
            headers=headers,
        )


class NotFound(MarketplaceError):
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(MarketplaceError):
    http_status = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class AlreadyOwned(Conflict):
    default_detail = "You have already purchased this product"


class PurchaseConflict(Conflict):
    """Lost a race on the (buyer, product) uniqueness constraint."""

    default_detail = "A checkout for this product is already in progress, please try again"


class Forbidden(MarketplaceError):
    http_status = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class SelfPurchaseForbidden(MarketplaceError):
    http_status = status.HTTP_400_BAD_REQUEST
    default_detail = "You cannot purchase your own product"


class InvalidSignature(MarketplaceError):
    # Never say more than this: the caller may be probing order references
    http_status = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid webhook signature"


class GatewayError(MarketplaceError):
    http_status = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment gateway request failed"


class ValidationFailed(MarketplaceError):
    http_status = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"
