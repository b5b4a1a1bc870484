"""Purchases router: starting checkouts, buyer library and seller earnings."""
from fastapi import APIRouter, Depends, Request, status

from app.config import settings
from app.models.user import User
from app.auth.dependencies import get_current_active_user
from app.rate_limit import limiter
from app.schemas.payments import CreateOrderRequest, CreateOrderResponse
from app.schemas.purchases import PurchaseResponse, EarningResponse, EarningsSummaryResponse
from app.services.deps import get_ledger, get_orchestrator
from app.services.ledger import LedgerStore
from app.services.orchestrator import PurchaseOrchestrator

router = APIRouter()


@router.post(
    "/api/payment/create-order",
    response_model=CreateOrderResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.CREATE_ORDER_RATE_LIMIT)
async def create_order(
    request: Request,
    request_data: CreateOrderRequest,
    current_user: User = Depends(get_current_active_user),
    orchestrator: PurchaseOrchestrator = Depends(get_orchestrator),
):
    """
    Start purchasing a product.

    - Free products are acquired immediately (no payment)
    - Paid products get a gateway order; the purchase stays pending until
      the gateway webhook confirms the payment
    - 409 if already owned or a concurrent checkout won the race
    """
    outcome = await orchestrator.initiate_purchase(current_user.uuid, str(request_data.product_id))

    if outcome.free:
        return CreateOrderResponse(
            free=True,
            purchase_id=outcome.purchase_id,
            message="Free document acquired successfully",
        )

    return CreateOrderResponse(
        free=False,
        purchase_id=outcome.purchase_id,
        order_id=outcome.order_id,
        amount=outcome.amount,
        currency=outcome.currency,
        key=outcome.publishable_key or None,
    )


@router.get("/api/purchases/my", response_model=list[PurchaseResponse])
async def my_purchases(
    current_user: User = Depends(get_current_active_user),
    ledger: LedgerStore = Depends(get_ledger),
):
    """List the current user's purchases, newest first."""
    rows = await ledger.list_purchases_for_buyer(current_user.uuid)
    return [
        PurchaseResponse(
            purchase_id=purchase.uuid,
            product_id=purchase.product_id,
            title=title,
            seller_name=seller_name,
            allow_download=allow_download,
            status=purchase.status,
            amount=purchase.amount,
            created_at=purchase.created_at,
        )
        for purchase, title, allow_download, seller_name in rows
    ]


@router.get("/api/purchases/earnings", response_model=EarningsSummaryResponse)
async def seller_earnings(
    current_user: User = Depends(get_current_active_user),
    ledger: LedgerStore = Depends(get_ledger),
):
    """Seller earnings ledger with lifetime totals."""
    rows = await ledger.list_earnings_for_seller(current_user.uuid)
    total_earned, total_fee = await ledger.earnings_totals(current_user.uuid)

    items = [
        EarningResponse(
            uuid=earning.uuid,
            purchase_id=earning.purchase_id,
            product_id=product_id,
            product_title=title,
            total_amount=earning.total_amount,
            platform_fee=earning.platform_fee,
            seller_amount=earning.seller_amount,
            created_at=earning.created_at,
        )
        for earning, product_id, title in rows
    ]

    return EarningsSummaryResponse(
        total_earned=total_earned,
        total_platform_fee=total_fee,
        sales_count=len(items),
        items=items,
        last_sale_at=items[0].created_at if items else None,
    )
