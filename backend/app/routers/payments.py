"""Payment webhook router."""
from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.schemas.payments import WebhookResponse
from app.services.deps import get_settlement_processor
from app.services.gateway import SIGNATURE_HEADER
from app.services.settlement import SettlementProcessor

router = APIRouter()


@router.post("/api/payment/webhook", response_model=WebhookResponse, response_model_exclude_none=True)
async def payment_webhook(
    request: Request,
    processor: SettlementProcessor = Depends(get_settlement_processor),
):
    """
    Handle payment gateway webhook events.

    Called by the gateway, not by clients. The body is passed on as the raw
    bytes received; the signature covers those bytes exactly.
    """
    signature = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing signature header"
        )

    payload = await request.body()
    result = await processor.handle_payment_confirmation(payload, signature)
    return result.as_dict()
