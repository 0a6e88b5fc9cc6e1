"""
Product catalog endpoints: public browsing, admin management.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from deps import Pagination, pagination_params, require_admin
from domain.constants import PRODUCT_SORT_FIELDS
from domain.responses import success_response, paginated_response
from models import ProductCreateRequest, ProductUpdateRequest, ProductOut, dump
from services import inventory_service
from utils.validators import validate_sort

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/products", tags=["products"])


@router.get("")
async def list_products(
    page: Pagination = Depends(pagination_params),
    search: Optional[str] = Query(None, max_length=200),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
):
    sort_by, sort_order = validate_sort(sort_by, sort_order, PRODUCT_SORT_FIELDS)
    products, total = await inventory_service.list_products(
        db,
        limit=page["limit"],
        offset=page["offset"],
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return paginated_response(
        [dump(ProductOut, p) for p in products],
        page=page["page"],
        limit=page["limit"],
        total=total,
    )


@router.get("/low-stock")
async def list_low_stock(
    threshold: Optional[int] = Query(None, ge=0),
    _admin=Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    threshold = settings.low_stock_threshold if threshold is None else threshold
    products = await inventory_service.list_low_stock(db, threshold=threshold)
    return success_response(
        data=[dump(ProductOut, p) for p in products],
        meta={"count": len(products), "threshold": threshold},
    )


@router.get("/{product_id}")
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await inventory_service.get_product(db, product_id)
    return success_response(data=dump(ProductOut, product))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreateRequest,
    _admin=Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    product = await inventory_service.create_product(
        db,
        name=request.name,
        description=request.description,
        price=request.price,
        stock=request.stock,
        image_url=request.image_url,
    )
    await db.commit()
    await db.refresh(product)
    return success_response(data=dump(ProductOut, product))


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    request: ProductUpdateRequest,
    _admin=Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    product = await inventory_service.update_product(
        db,
        product_id=product_id,
        name=request.name,
        description=request.description,
        price=request.price,
        stock=request.stock,
        image_url=request.image_url,
    )
    await db.commit()
    await db.refresh(product)
    return success_response(data=dump(ProductOut, product))


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    _admin=Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await inventory_service.delete_product(db, product_id=product_id)
    await db.commit()
    return success_response(data={"id": product_id, "message": "Product deleted successfully"})
