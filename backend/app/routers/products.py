"""Products router: listing, public lookup, seller edits and buyer access."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.auth.dependencies import get_current_active_user
from app.schemas.products import (
    PriceUpdate,
    ProductAccessResponse,
    ProductCreate,
    ProductDeleteResponse,
    ProductResponse,
)
from app.services import products as product_service
from app.services.deps import get_storage
from app.services.storage import DocumentStorage

router = APIRouter()


@router.post("/api/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List a new document for sale.

    - Price 0 lists a free document
    - Assigns a unique 6-character short code
    - New listings wait for moderation (inactive, pending_review)
    """
    return await product_service.create_product(
        db,
        current_user,
        title=product_data.title,
        price=product_data.price,
        description=product_data.description,
        mrp=product_data.mrp,
        allow_download=product_data.allow_download,
        file_path=product_data.file_path,
        file_size=product_data.file_size,
    )


@router.get("/api/products/mine", response_model=list[ProductResponse])
async def list_my_products(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """List the current user's own listings, newest first."""
    return await product_service.list_seller_products(db, current_user.uuid)


@router.get("/api/products/code/{short_code}", response_model=ProductResponse)
async def get_product_by_code(short_code: str, db: AsyncSession = Depends(get_db)):
    """Resolve a short code (as printed on shared links) to an approved, listed product."""
    return await product_service.get_product_by_code(db, short_code)


@router.get("/api/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, db: AsyncSession = Depends(get_db)):
    """Public metadata of an approved, listed product."""
    return await product_service.get_product(db, product_id)


@router.get("/api/products/{product_id}/access", response_model=ProductAccessResponse)
async def get_product_access(
    product_id: str,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_storage),
):
    """Short-lived document link; 403 unless the caller holds a paid purchase."""
    return await product_service.get_access(db, storage, product_id, current_user.uuid)


@router.put("/api/products/{product_id}/price", response_model=ProductResponse)
async def update_product_price(
    product_id: str,
    update: PriceUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the price of one of the caller's listings."""
    return await product_service.update_price(db, product_id, current_user.uuid, update.price)


@router.delete("/api/products/{product_id}", response_model=ProductDeleteResponse)
async def delete_product(
    product_id: str,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_storage),
):
    """
    Remove one of the caller's listings.

    - Sold at least once: unlisted only, buyers keep access
    - Never sold: deleted permanently
    """
    soft_deleted = await product_service.delete_product(db, storage, product_id, current_user.uuid)
    if soft_deleted:
        return ProductDeleteResponse(
            message="Product removed from marketplace. Existing buyers keep access.",
            soft_deleted=True,
        )
    return ProductDeleteResponse(message="Product deleted permanently", soft_deleted=False)
