"""
Wishlist service: saved products per user, plus move-to-cart.
"""

import logging

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database import unit_of_work
from db_models import WishlistItem, CartItem
from domain.errors import NotFoundError, ConflictError, InsufficientStockError
from services import inventory_service

logger = logging.getLogger(__name__)


async def _get_entry(db: AsyncSession, user_id: int, product_id: int) -> WishlistItem | None:
    res = await db.execute(
        select(WishlistItem).where(
            WishlistItem.user_id == user_id,
            WishlistItem.product_id == product_id,
        )
    )
    return res.scalar_one_or_none()


async def list_wishlist(db: AsyncSession, *, user_id: int, limit: int = 20, offset: int = 0) -> tuple[list[WishlistItem], int]:
    res = await db.execute(
        select(WishlistItem)
        .where(WishlistItem.user_id == user_id)
        .options(selectinload(WishlistItem.product))
        .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        .limit(limit)
        .offset(offset)
    )
    total = await db.scalar(select(func.count(WishlistItem.id)).where(WishlistItem.user_id == user_id))
    return res.scalars().all(), total or 0


async def add_to_wishlist(db: AsyncSession, *, user_id: int, product_id: int) -> WishlistItem:
    product = await inventory_service.get_product(db, product_id)
    if await _get_entry(db, user_id, product_id):
        raise ConflictError(
            "Product already in wishlist",
            details={"productId": product_id, "productName": product.name},
        )

    item = WishlistItem(user_id=user_id, product_id=product_id)
    item.product = product
    db.add(item)
    await db.flush()
    return item


async def remove_from_wishlist(db: AsyncSession, *, user_id: int, product_id: int) -> None:
    item = await _get_entry(db, user_id, product_id)
    if not item:
        raise NotFoundError("Wishlist item", str(product_id))
    await db.delete(item)
    await db.flush()


async def is_in_wishlist(db: AsyncSession, *, user_id: int, product_id: int) -> bool:
    return await _get_entry(db, user_id, product_id) is not None


async def clear_wishlist(db: AsyncSession, *, user_id: int) -> int:
    res = await db.execute(
        delete(WishlistItem)
        .where(WishlistItem.user_id == user_id)
    )
    return res.rowcount


async def move_to_cart(db: AsyncSession, *, user_id: int, product_id: int, quantity: int = 1) -> CartItem:
    """
    Remove a product from the wishlist and add it to the cart in one transaction.

    The merged cart quantity must fit in current stock; otherwise nothing changes.
    """
    async with unit_of_work(db):
        product = await inventory_service.get_product(db, product_id)
        if product.stock < quantity:
            raise InsufficientStockError(
                [{"productId": product.id, "productName": product.name, "available": product.stock, "required": quantity}],
                message="Insufficient stock",
            )

        entry = await _get_entry(db, user_id, product_id)
        if not entry:
            raise NotFoundError("Wishlist item", str(product_id))
        await db.delete(entry)

        res = await db.execute(
            select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
        )
        cart_item = res.scalar_one_or_none()
        if cart_item:
            new_quantity = cart_item.quantity + quantity
            if product.stock < new_quantity:
                raise InsufficientStockError(
                    [{
                        "productId": product.id,
                        "productName": product.name,
                        "available": product.stock,
                        "required": new_quantity,
                        "currentInCart": cart_item.quantity,
                    }],
                    message="Insufficient stock for total cart quantity",
                )
            cart_item.quantity = new_quantity
        else:
            cart_item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
            db.add(cart_item)
        cart_item.product = product
        await db.flush()

    logger.info(f"User {user_id} moved product {product_id} from wishlist to cart")
    return cart_item
