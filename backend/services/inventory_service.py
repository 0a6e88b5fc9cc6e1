"""
Inventory service: product catalog and the stock counter.

Stock is only ever changed through decrement_stock_if_available() and
increment_stock(), both single UPDATE statements evaluated by the database so
concurrent requests (and multiple server instances) cannot oversell.
"""

import logging
from datetime import datetime

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Product, OrderItem, CartItem, WishlistItem
from domain.errors import NotFoundError, ConflictError
from domain.pricing import round_money

logger = logging.getLogger(__name__)


async def get_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id, populate_existing=True)
    if not product:
        raise NotFoundError("Product", str(product_id))
    return product


async def decrement_stock_if_available(db: AsyncSession, product_id: int, quantity: int) -> bool:
    """
    Guarded decrement: take `quantity` units only if that many are in stock.

    Returns False (and changes nothing) when the row is missing or short.
    """
    res = await db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


async def increment_stock(db: AsyncSession, product_id: int, quantity: int) -> None:
    await db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + quantity, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )


async def list_products(
    db: AsyncSession,
    *,
    limit: int = 10,
    offset: int = 0,
    search: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> tuple[list[Product], int]:
    conditions = []
    if search:
        pattern = f"%{search.lower()}%"
        conditions.append(
            or_(func.lower(Product.name).like(pattern), func.lower(Product.description).like(pattern))
        )
    if min_price is not None:
        conditions.append(Product.price >= min_price)
    if max_price is not None:
        conditions.append(Product.price <= max_price)

    column = getattr(Product, sort_by)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    res = await db.execute(
        select(Product).where(*conditions).order_by(ordering, Product.id).limit(limit).offset(offset)
        .execution_options(populate_existing=True)
    )
    total = await db.scalar(select(func.count(Product.id)).where(*conditions))
    return res.scalars().all(), total or 0


async def create_product(
    db: AsyncSession,
    *,
    name: str,
    description: str,
    price: float,
    stock: int,
    image_url: str | None,
) -> Product:
    product = Product(
        name=name,
        description=description,
        price=round_money(price),
        stock=stock,
        image_url=image_url,
    )
    db.add(product)
    await db.flush()
    logger.info(f"Product {product.id} created: {name} (stock={stock})")
    return product


async def update_product(
    db: AsyncSession,
    *,
    product_id: int,
    name: str | None = None,
    description: str | None = None,
    price: float | None = None,
    stock: int | None = None,
    image_url: str | None = None,
) -> Product:
    """Update a product's fields. Only provided fields are updated."""
    product = await get_product(db, product_id)

    if name is not None:
        product.name = name
    if description is not None:
        product.description = description
    if price is not None:
        product.price = round_money(price)
    if stock is not None:
        product.stock = stock
    if image_url is not None:
        product.image_url = image_url

    product.updated_at = datetime.utcnow()
    await db.flush()
    return product


async def delete_product(db: AsyncSession, *, product_id: int) -> None:
    """Delete a product. Products referenced by past orders cannot be removed."""
    product = await get_product(db, product_id)

    ordered = await db.scalar(
        select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)
    )
    if ordered:
        raise ConflictError(
            f"Cannot delete product {product_id}: referenced by {ordered} order item(s)",
            details={"productId": product_id, "orderItems": ordered},
        )

    await db.execute(delete(CartItem).where(CartItem.product_id == product_id))
    await db.execute(delete(WishlistItem).where(WishlistItem.product_id == product_id))
    await db.delete(product)
    await db.flush()
    logger.info(f"Product {product_id} deleted")


async def list_low_stock(db: AsyncSession, *, threshold: int) -> list[Product]:
    res = await db.execute(
        select(Product)
        .where(Product.stock <= threshold)
        .order_by(Product.stock.asc(), Product.id)
        .execution_options(populate_existing=True)
    )
    return res.scalars().all()
