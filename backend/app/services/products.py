"""Product catalogue service: listings, public lookups, seller edits and buyer access."""
import logging
import secrets
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.product import Product, REVIEW_APPROVED
from app.models.user import User
from app.services.commission import to_decimal
from app.services.errors import Conflict, Forbidden, NotFound, ValidationFailed
from app.services.ledger import LedgerStore
from app.services.storage import DocumentStorage

logger = logging.getLogger(__name__)

# No 0/O/1/I so codes can be read aloud
SHORT_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SHORT_CODE_LENGTH = 6
SHORT_CODE_ATTEMPTS = 10


def generate_short_code() -> str:
    """Return a random 6-character listing code, e.g. ``A3F9K2``."""
    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(SHORT_CODE_LENGTH))


async def _unused_short_code(db: AsyncSession) -> str:
    for _ in range(SHORT_CODE_ATTEMPTS):
        code = generate_short_code()
        result = await db.execute(select(Product.uuid).where(Product.short_code == code))
        if result.scalar_one_or_none() is None:
            return code
    raise Conflict("Could not allocate a unique product code, please retry")


async def create_product(
    db: AsyncSession,
    seller: User,
    title: str,
    price,
    description: Optional[str] = None,
    mrp=None,
    allow_download: bool = False,
    file_path: Optional[str] = None,
    file_size: Optional[int] = None,
) -> Product:
    """Create a listing for *seller*.

    New listings start in ``pending_review`` and inactive. The short code is
    checked before insert and guarded by a unique constraint afterwards.
    """
    price = to_decimal(price)
    if price < 0:
        raise ValidationFailed("Price must not be negative")
    if mrp is not None:
        mrp = to_decimal(mrp)
        if mrp < price:
            raise ValidationFailed("MRP must be greater than or equal to the price")

    count_result = await db.execute(
        select(func.count(Product.uuid)).where(Product.seller_id == seller.uuid)
    )
    if (count_result.scalar() or 0) >= settings.MAX_PRODUCTS_PER_SELLER:
        raise ValidationFailed(
            f"You can list a maximum of {settings.MAX_PRODUCTS_PER_SELLER} products per account"
        )

    product = Product(
        seller_id=seller.uuid,
        short_code=await _unused_short_code(db),
        title=title,
        description=description,
        mrp=mrp,
        price=price,
        allow_download=allow_download,
        file_path=file_path,
        file_size=file_size,
    )
    db.add(product)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Could not allocate a unique product code, please retry")
    await db.refresh(product)

    logger.info(f"Product {product.uuid} ({product.short_code}) listed by {seller.uuid} at {price}")
    return product


def _public(query):
    # Buyers only see listings that passed moderation and are still listed
    return query.where(Product.is_active.is_(True), Product.review_status == REVIEW_APPROVED)


async def get_product(db: AsyncSession, product_id: str) -> Product:
    result = await db.execute(_public(select(Product).where(Product.uuid == product_id)))
    product = result.scalar_one_or_none()
    if not product:
        raise NotFound("Product not found")
    return product


async def get_product_by_code(db: AsyncSession, short_code: str) -> Product:
    result = await db.execute(_public(select(Product).where(Product.short_code == short_code.upper())))
    product = result.scalar_one_or_none()
    if not product:
        raise NotFound("No product found with that code")
    return product


async def list_seller_products(db: AsyncSession, seller_id: str) -> list[Product]:
    """All of a seller's listings, including unapproved and unlisted ones."""
    result = await db.execute(
        select(Product)
        .where(Product.seller_id == seller_id)
        .order_by(Product.created_at.desc())
    )
    return list(result.scalars().all())


async def _owned_product(db: AsyncSession, product_id: str, seller_id: str) -> Product:
    result = await db.execute(
        select(Product).where(Product.uuid == product_id, Product.seller_id == seller_id)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise NotFound("Product not found or you do not own it")
    return product


async def update_price(db: AsyncSession, product_id: str, seller_id: str, price) -> Product:
    """Reprice a listing. Checkouts already open keep the amount they were created with."""
    product = await _owned_product(db, product_id, seller_id)

    price = to_decimal(price)
    if price < 0:
        raise ValidationFailed("Price cannot be negative")
    if product.mrp is not None and to_decimal(product.mrp) < price:
        raise ValidationFailed("MRP must be greater than or equal to the price")

    old_price = product.price
    product.price = price
    await db.commit()
    await db.refresh(product)

    logger.info(f"Product {product.uuid} repriced {old_price} -> {price} by {seller_id}")
    return product


async def delete_product(
    db: AsyncSession, storage: DocumentStorage, product_id: str, seller_id: str
) -> bool:
    """Remove a listing. Returns True for a soft delete.

    Listings with paid purchases are only unlisted (``is_active = False``) so
    buyers keep access and the seller's earnings stay on the ledger. Unsold
    listings are deleted together with any abandoned checkouts.
    """
    product = await _owned_product(db, product_id, seller_id)
    file_path = product.file_path

    deleted = await LedgerStore(db).delete_product_if_unsold(product.uuid)
    if deleted:
        db.expunge(product)
        await db.commit()
        logger.info(f"Product {product_id} deleted by {seller_id}")
        if file_path:
            try:
                await run_in_threadpool(storage.delete, file_path)
            except Exception as e:
                # The row is gone; a stray blob is only wasted space
                logger.error(f"Failed to delete stored file {file_path}: {e}")
        return False

    product.is_active = False
    await db.commit()
    logger.info(f"Product {product_id} has paid purchases; unlisted instead of deleted")
    return True


async def get_access(
    db: AsyncSession, storage: DocumentStorage, product_id: str, buyer_id: str
) -> dict:
    """Issue a short-lived download link to a buyer holding a paid purchase.

    Access survives unlisting: it depends only on the paid purchase.
    """
    if not await LedgerStore(db).has_paid_purchase(buyer_id, product_id):
        raise Forbidden("Purchase not found or not paid")

    result = await db.execute(select(Product).where(Product.uuid == product_id))
    product = result.scalar_one_or_none()
    if not product or not product.file_path:
        raise NotFound("Product file not found")

    expires_in = settings.SIGNED_URL_EXPIRY_SECONDS
    signed_url = await run_in_threadpool(storage.signed_url, product.file_path, expires_in)
    return {
        "signed_url": signed_url,
        "expires_in": expires_in,
        "allow_download": product.allow_download,
    }
