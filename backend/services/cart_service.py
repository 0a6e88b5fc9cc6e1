"""
Cart service: per-user cart lines.

One CartItem per (user, product); adding a product already in the cart merges
quantities. Stock is checked on every add/update but never reserved: the
authoritative check happens when the order is placed.
"""

import logging

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import CartItem, Product
from domain.errors import NotFoundError, InsufficientStockError
from domain.pricing import lines_total
from services import inventory_service

logger = logging.getLogger(__name__)


def _stock_line(product: Product, required: int, **extra) -> dict:
    return {
        "productId": product.id,
        "productName": product.name,
        "available": product.stock,
        "required": required,
        **extra,
    }


async def list_cart_lines(db: AsyncSession, user_id: int) -> list[CartItem]:
    """All cart lines for a user with their products loaded, newest first."""
    res = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .options(selectinload(CartItem.product))
        .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        .execution_options(populate_existing=True)
    )
    return res.scalars().all()


async def delete_all_cart_items(db: AsyncSession, user_id: int) -> int:
    res = await db.execute(
        delete(CartItem)
        .where(CartItem.user_id == user_id)
    )
    return res.rowcount


async def _get_line(db: AsyncSession, user_id: int, product_id: int) -> CartItem | None:
    res = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
        .options(selectinload(CartItem.product))
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def get_cart(db: AsyncSession, user_id: int) -> dict:
    lines = await list_cart_lines(db, user_id)
    return {
        "items": lines,
        "total": lines_total((line.product.price, line.quantity) for line in lines),
        "item_count": sum(line.quantity for line in lines),
    }


async def add_to_cart(db: AsyncSession, *, user_id: int, product_id: int, quantity: int) -> tuple[CartItem, bool]:
    """
    Add `quantity` units of a product, merging into an existing line.

    Returns (cart_item, created).
    """
    product = await inventory_service.get_product(db, product_id)
    if product.stock < quantity:
        raise InsufficientStockError([_stock_line(product, quantity)], message="Insufficient stock")

    existing = await _get_line(db, user_id, product_id)
    if existing:
        new_quantity = existing.quantity + quantity
        if product.stock < new_quantity:
            raise InsufficientStockError(
                [_stock_line(product, new_quantity, currentInCart=existing.quantity)],
                message="Insufficient stock for total quantity",
            )
        existing.quantity = new_quantity
        await db.flush()
        return existing, False

    item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
    item.product = product
    db.add(item)
    await db.flush()
    return item, True


async def update_cart_item(db: AsyncSession, *, user_id: int, product_id: int, quantity: int) -> CartItem:
    product = await inventory_service.get_product(db, product_id)
    if product.stock < quantity:
        raise InsufficientStockError([_stock_line(product, quantity)], message="Insufficient stock")

    item = await _get_line(db, user_id, product_id)
    if not item:
        raise NotFoundError("Cart item", str(product_id))
    item.quantity = quantity
    await db.flush()
    return item


async def remove_from_cart(db: AsyncSession, *, user_id: int, product_id: int) -> None:
    item = await _get_line(db, user_id, product_id)
    if not item:
        raise NotFoundError("Cart item", str(product_id))
    await db.delete(item)
    await db.flush()


async def clear_cart(db: AsyncSession, user_id: int) -> int:
    removed = await delete_all_cart_items(db, user_id)
    logger.info(f"Cart cleared for user {user_id} ({removed} line(s))")
    return removed
