"""FastAPI dependencies that assemble the purchase pipeline per request."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.services.gateway import PaymentGateway, StripeGateway
from app.services.ledger import LedgerStore
from app.services.orchestrator import PurchaseOrchestrator
from app.services.settlement import SettlementProcessor
from app.services.storage import DocumentStorage, TokenSignedStorage


def get_gateway() -> PaymentGateway:
    """Payment gateway client; overridden in tests with a fake."""
    return StripeGateway()


def get_storage() -> DocumentStorage:
    """Blob storage client; overridden in tests."""
    return TokenSignedStorage()


def get_ledger(db: AsyncSession = Depends(get_db)) -> LedgerStore:
    return LedgerStore(db)


def get_orchestrator(
    ledger: LedgerStore = Depends(get_ledger),
    gateway: PaymentGateway = Depends(get_gateway),
) -> PurchaseOrchestrator:
    return PurchaseOrchestrator(ledger, gateway, currency=settings.CURRENCY)


def get_settlement_processor(
    ledger: LedgerStore = Depends(get_ledger),
    gateway: PaymentGateway = Depends(get_gateway),
) -> SettlementProcessor:
    return SettlementProcessor(
        ledger,
        gateway,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        commission_rate=settings.PLATFORM_COMMISSION_RATE,
    )
