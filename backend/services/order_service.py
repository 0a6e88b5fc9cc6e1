"""
Order service: turns a user's cart into an order and reverses it on cancel.

place_order():
    1. load cart lines with current product price/stock
    2. reject an empty cart (EmptyCartError)
    3. reject the whole cart if any line is short (InsufficientStockError listing
       every short line) before anything is written
    4. total = Σ price × quantity, rounded half-up to cents
    5. in one transaction: create the order and its items (snapshot prices),
       guarded-decrement each product, clear the cart

The check in step 3 is advisory. A concurrent purchase can still drain stock
between the check and the write, so each decrement is conditional
(stock >= quantity) and a miss rolls the whole order back.

cancel_order() is the exact inverse for PENDING orders: the status flip is
guarded on status = PENDING so only one of two racing cancels restores stock.
"""

import logging
from datetime import datetime

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database import unit_of_work
from db_models import Order, OrderItem, Product
from domain.enums import OrderStatus
from domain.errors import EmptyCartError, InsufficientStockError, InvalidStateError, NotFoundError
from domain.pricing import lines_total
from services import cart_service, inventory_service

logger = logging.getLogger(__name__)


def _with_items():
    return selectinload(Order.items).selectinload(OrderItem.product)


async def load_order(db: AsyncSession, order_id: int, *, user_id: int | None = None) -> Order | None:
    """Fetch an order with items and products, refreshing any stale copies in the session."""
    stmt = select(Order).where(Order.id == order_id).options(_with_items())
    if user_id is not None:
        stmt = stmt.where(Order.user_id == user_id)
    res = await db.execute(stmt.execution_options(populate_existing=True))
    return res.scalar_one_or_none()


# ── Placement ───────────────────────────────────────────────────────


async def place_order(db: AsyncSession, *, user_id: int) -> Order:
    async with unit_of_work(db):
        lines = await cart_service.list_cart_lines(db, user_id)
        if not lines:
            raise EmptyCartError()

        short = [
            {
                "productId": line.product_id,
                "productName": line.product.name,
                "available": line.product.stock,
                "required": line.quantity,
            }
            for line in lines
            if line.product.stock < line.quantity
        ]
        if short:
            logger.warning(f"Order rejected for user {user_id}: {len(short)} line(s) short on stock")
            raise InsufficientStockError(short)

        total = lines_total((line.product.price, line.quantity) for line in lines)

        order = Order(
            user_id=user_id,
            total=total,
            status=OrderStatus.PENDING.value,
            created_at=datetime.utcnow(),
        )
        db.add(order)
        await db.flush()

        for line in lines:
            db.add(
                OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price=line.product.price,
                )
            )
            taken = await inventory_service.decrement_stock_if_available(db, line.product_id, line.quantity)
            if not taken:
                logger.warning(
                    f"Order for user {user_id} lost a stock race on product {line.product_id}; rolling back"
                )
                available = await _current_stock(db, line.product_id)
                raise InsufficientStockError(
                    [
                        {
                            "productId": line.product_id,
                            "productName": line.product.name,
                            "available": available,
                            "required": line.quantity,
                        }
                    ]
                )

        await cart_service.delete_all_cart_items(db, user_id)

    logger.info(f"Order {order.id} placed for user {user_id}: {len(lines)} line(s), total={total}")
    return await load_order(db, order.id)


async def _current_stock(db: AsyncSession, product_id: int) -> int:
    stock = await db.scalar(select(Product.stock).where(Product.id == product_id))
    return stock or 0


# ── Cancellation ────────────────────────────────────────────────────


async def cancel_order(db: AsyncSession, *, user_id: int, order_id: int) -> dict:
    async with unit_of_work(db):
        order = await load_order(db, order_id, user_id=user_id)
        if not order:
            raise NotFoundError("Order", str(order_id))

        if order.status != OrderStatus.PENDING.value:
            raise InvalidStateError(
                f"Order cannot be cancelled: order is already {order.status.lower()}",
                current_status=order.status,
            )

        flipped = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus.PENDING.value)
            .values(status=OrderStatus.CANCELLED.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if flipped.rowcount != 1:
            current = await db.scalar(select(Order.status).where(Order.id == order_id))
            raise InvalidStateError(
                f"Order cannot be cancelled: order is already {str(current).lower()}",
                current_status=current,
            )

        for item in order.items:
            await inventory_service.increment_stock(db, item.product_id, item.quantity)

    logger.info(f"Order {order_id} cancelled by user {user_id}; stock restored for {len(order.items)} item(s)")
    return {"order_id": order_id}


# ── Read side ───────────────────────────────────────────────────────


async def list_user_orders(
    db: AsyncSession,
    *,
    user_id: int,
    limit: int = 10,
    offset: int = 0,
    status: str | None = None,
) -> tuple[list[Order], int]:
    conditions = [Order.user_id == user_id]
    if status:
        conditions.append(Order.status == status)

    res = await db.execute(
        select(Order)
        .where(*conditions)
        .options(_with_items())
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
    )
    total = await db.scalar(select(func.count(Order.id)).where(*conditions))
    return res.scalars().all(), total or 0


async def get_user_order(db: AsyncSession, *, user_id: int, order_id: int) -> Order:
    order = await load_order(db, order_id, user_id=user_id)
    if not order:
        raise NotFoundError("Order", str(order_id))
    return order


async def get_order_stats(db: AsyncSession, *, user_id: int) -> dict:
    total_orders = await db.scalar(select(func.count(Order.id)).where(Order.user_id == user_id))
    total_spent = await db.scalar(
        select(func.coalesce(func.sum(Order.total), 0)).where(
            Order.user_id == user_id,
            Order.status != OrderStatus.CANCELLED.value,
        )
    )
    res = await db.execute(
        select(Order.status, func.count(Order.id))
        .where(Order.user_id == user_id)
        .group_by(Order.status)
    )
    return {
        "total_orders": total_orders or 0,
        "total_spent": total_spent or 0,
        "orders_by_status": {status: count for status, count in res.all()},
    }
