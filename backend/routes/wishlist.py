"""
Wishlist endpoints: saved products and move-to-cart.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import require_user
from domain.responses import success_response, paginated_response
from models import MoveToCartRequest, WishlistItemOut, CartItemOut, dump
from services import wishlist_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("")
async def get_wishlist(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await wishlist_service.list_wishlist(
        db, user_id=user.id, limit=limit, offset=(page - 1) * limit
    )
    return paginated_response([dump(WishlistItemOut, i) for i in items], page=page, limit=limit, total=total)


@router.delete("/clear/all")
async def clear_wishlist(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    removed = await wishlist_service.clear_wishlist(db, user_id=user.id)
    await db.commit()
    return success_response(data={"message": "Wishlist cleared successfully", "itemsRemoved": removed})


@router.post("/{product_id}", status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    product_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    item = await wishlist_service.add_to_wishlist(db, user_id=user.id, product_id=product_id)
    await db.commit()
    return success_response(data={"message": "Product added to wishlist", "wishlistItem": dump(WishlistItemOut, item)})


@router.delete("/{product_id}")
async def remove_from_wishlist(
    product_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await wishlist_service.remove_from_wishlist(db, user_id=user.id, product_id=product_id)
    await db.commit()
    return success_response(data={"message": "Product removed from wishlist", "productId": product_id})


@router.post("/{product_id}/move-to-cart")
async def move_to_cart(
    product_id: int,
    request: MoveToCartRequest | None = None,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    item = await wishlist_service.move_to_cart(
        db, user_id=user.id, product_id=product_id, quantity=request.quantity if request else 1
    )
    return success_response(data={"message": "Product moved from wishlist to cart", "cartItem": dump(CartItemOut, item)})


@router.get("/{product_id}/check")
async def check_wishlist(
    product_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    in_wishlist = await wishlist_service.is_in_wishlist(db, user_id=user.id, product_id=product_id)
    return success_response(data={"inWishlist": in_wishlist, "productId": product_id})
