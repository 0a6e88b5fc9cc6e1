"""
Cart endpoints: the authenticated user's cart.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import require_user
from domain.pricing import money_to_json
from domain.responses import success_response
from models import AddToCartRequest, UpdateCartRequest, CartItemOut, dump
from services import cart_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("")
async def get_cart(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    cart = await cart_service.get_cart(db, user.id)
    return success_response(
        data={
            "cartItems": [dump(CartItemOut, item) for item in cart["items"]],
            "total": money_to_json(cart["total"]),
            "itemCount": cart["item_count"],
        }
    )


@router.post("")
async def add_to_cart(
    request: AddToCartRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    item, created = await cart_service.add_to_cart(
        db,
        user_id=user.id,
        product_id=request.product_id,
        quantity=request.quantity,
    )
    await db.commit()
    payload = success_response(
        data={
            "message": "Product added to cart" if created else "Cart item quantity updated",
            "cartItem": dump(CartItemOut, item),
        }
    )
    return JSONResponse(status_code=201 if created else 200, content=payload)


@router.put("/{product_id}")
async def update_cart_item(
    product_id: int,
    request: UpdateCartRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    item = await cart_service.update_cart_item(
        db,
        user_id=user.id,
        product_id=product_id,
        quantity=request.quantity,
    )
    await db.commit()
    return success_response(data={"message": "Cart item updated", "cartItem": dump(CartItemOut, item)})


@router.delete("/clear/all")
async def clear_cart(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    removed = await cart_service.clear_cart(db, user.id)
    await db.commit()
    return success_response(data={"message": "Cart cleared successfully", "itemsRemoved": removed})


@router.delete("/{product_id}")
async def remove_from_cart(
    product_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await cart_service.remove_from_cart(db, user_id=user.id, product_id=product_id)
    await db.commit()
    return success_response(data={"message": "Product removed from cart", "productId": product_id})
