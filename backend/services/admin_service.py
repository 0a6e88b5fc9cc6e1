"""
Admin service: dashboard numbers, user/order management and sales analytics.

Order status updates follow the fulfilment state machine in domain.enums:
forward moves only, never into CANCELLED, never out of a terminal status.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database import unit_of_work
from db_models import User, Product, CartItem, WishlistItem, Order, OrderItem
from domain.constants import ANALYTICS_PERIODS, DEFAULT_ANALYTICS_PERIOD
from domain.enums import OrderStatus, Role, can_advance
from domain.errors import InvalidStateError, NotFoundError, ValidationError
from services import order_service

logger = logging.getLogger(__name__)

_NOT_CANCELLED = Order.status != OrderStatus.CANCELLED.value


def _with_user_and_items():
    return (
        selectinload(Order.user),
        selectinload(Order.items).selectinload(OrderItem.product),
    )


async def get_dashboard(db: AsyncSession, *, low_stock_threshold: int) -> dict:
    total_users = await db.scalar(select(func.count(User.id)))
    total_products = await db.scalar(select(func.count(Product.id)))
    total_orders = await db.scalar(select(func.count(Order.id)))
    total_revenue = await db.scalar(select(func.coalesce(func.sum(Order.total), 0)).where(_NOT_CANCELLED))
    pending_orders = await db.scalar(
        select(func.count(Order.id)).where(Order.status == OrderStatus.PENDING.value)
    )
    low_stock = await db.scalar(select(func.count(Product.id)).where(Product.stock <= low_stock_threshold))

    res = await db.execute(
        select(Order)
        .options(*_with_user_and_items())
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(5)
    )

    return {
        "overview": {
            "total_users": total_users or 0,
            "total_products": total_products or 0,
            "total_orders": total_orders or 0,
            "total_revenue": total_revenue or 0,
            "pending_orders": pending_orders or 0,
            "low_stock_products": low_stock or 0,
        },
        "recent_orders": res.scalars().all(),
    }


async def list_users(
    db: AsyncSession,
    *,
    limit: int = 10,
    offset: int = 0,
    search: str | None = None,
    role: str | None = None,
) -> tuple[list[dict], int]:
    conditions = []
    if search:
        pattern = f"%{search.lower()}%"
        conditions.append(func.lower(User.name).like(pattern) | func.lower(User.email).like(pattern))
    if role:
        conditions.append(User.role == role)

    order_count = (
        select(func.count(Order.id)).where(Order.user_id == User.id).correlate(User).scalar_subquery()
    )
    cart_count = (
        select(func.count(CartItem.id)).where(CartItem.user_id == User.id).correlate(User).scalar_subquery()
    )
    wishlist_count = (
        select(func.count(WishlistItem.id)).where(WishlistItem.user_id == User.id).correlate(User).scalar_subquery()
    )

    res = await db.execute(
        select(User, order_count, cart_count, wishlist_count)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = [
        {
            "user": user,
            "counts": {"orders": orders, "cart_items": cart, "wishlist_items": wishlist},
        }
        for user, orders, cart, wishlist in res.all()
    ]
    total = await db.scalar(select(func.count(User.id)).where(*conditions))
    return rows, total or 0


async def list_orders(
    db: AsyncSession,
    *,
    limit: int = 10,
    offset: int = 0,
    status: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    min_amount: float | None = None,
    max_amount: float | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> tuple[list[Order], int]:
    conditions = []
    if status:
        conditions.append(Order.status == status)
    if start_date:
        conditions.append(Order.created_at >= start_date)
    if end_date:
        conditions.append(Order.created_at <= end_date)
    if min_amount is not None:
        conditions.append(Order.total >= min_amount)
    if max_amount is not None:
        conditions.append(Order.total <= max_amount)

    column = getattr(Order, sort_by)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    res = await db.execute(
        select(Order)
        .where(*conditions)
        .options(*_with_user_and_items())
        .order_by(ordering, Order.id)
        .limit(limit)
        .offset(offset)
    )
    total = await db.scalar(select(func.count(Order.id)).where(*conditions))
    return res.scalars().all(), total or 0


async def update_order_status(db: AsyncSession, *, order_id: int, status: str) -> Order:
    target = OrderStatus(status)
    async with unit_of_work(db):
        order = await order_service.load_order(db, order_id)
        if not order:
            raise NotFoundError("Order", str(order_id))

        current = OrderStatus(order.status)
        if target == OrderStatus.CANCELLED:
            raise InvalidStateError(
                "Orders can only be cancelled by their owner while pending",
                current_status=current.value,
            )
        if not can_advance(current, target):
            raise InvalidStateError(
                f"Cannot change order status from {current.value} to {target.value}",
                current_status=current.value,
            )

        # Guarded on the status we validated against so a concurrent cancel wins cleanly.
        moved = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == current.value)
            .values(status=target.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if moved.rowcount != 1:
            latest = await db.scalar(select(Order.status).where(Order.id == order_id))
            raise InvalidStateError(
                f"Order status changed concurrently (now {latest})",
                current_status=latest,
            )

    logger.info(f"Order {order_id} status {current.value} -> {target.value}")
    res = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(*_with_user_and_items())
        .execution_options(populate_existing=True)
    )
    return res.scalar_one()


async def update_user_role(db: AsyncSession, *, user_id: int, role: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User", str(user_id))
    user.role = Role(role).value
    await db.flush()
    logger.info(f"User {user_id} role set to {user.role}")
    return user


async def get_sales_analytics(db: AsyncSession, *, period: str = DEFAULT_ANALYTICS_PERIOD) -> dict:
    if period not in ANALYTICS_PERIODS:
        raise ValidationError(
            f"Unsupported period '{period}'. Use one of: {', '.join(ANALYTICS_PERIODS)}",
            field="period",
        )
    end_date = datetime.utcnow()
    start_date = end_date - timedelta(days=ANALYTICS_PERIODS[period])
    in_window = (Order.created_at >= start_date, Order.created_at <= end_date)

    day = func.date(Order.created_at)
    by_day = await db.execute(
        select(day, func.count(Order.id), func.coalesce(func.sum(Order.total), 0))
        .where(*in_window, _NOT_CANCELLED)
        .group_by(day)
        .order_by(day.asc())
    )

    sold = func.sum(OrderItem.quantity)
    top = await db.execute(
        select(OrderItem.product_id, sold, func.count(OrderItem.id))
        .join(Order, OrderItem.order_id == Order.id)
        .where(*in_window, _NOT_CANCELLED)
        .group_by(OrderItem.product_id)
        .order_by(sold.desc(), OrderItem.product_id)
        .limit(10)
    )
    top_rows = top.all()
    products = {}
    if top_rows:
        res = await db.execute(select(Product).where(Product.id.in_([r[0] for r in top_rows])))
        products = {p.id: p for p in res.scalars().all()}

    revenue = (
        await db.execute(
            select(
                func.coalesce(func.sum(Order.total), 0),
                func.avg(Order.total),
                func.count(Order.id),
            ).where(*in_window, _NOT_CANCELLED)
        )
    ).one()

    by_status = await db.execute(
        select(Order.status, func.count(Order.id)).where(*in_window).group_by(Order.status)
    )

    return {
        "period": period,
        "sales_by_day": [
            {"date": str(d), "orders": n, "revenue": r} for d, n, r in by_day.all()
        ],
        "top_products": [
            {"product_id": pid, "quantity": qty, "order_count": cnt, "product": products.get(pid)}
            for pid, qty, cnt in top_rows
        ],
        "revenue": {"total": revenue[0] or 0, "average": revenue[1] or 0, "order_count": revenue[2] or 0},
        "orders_by_status": {s: n for s, n in by_status.all()},
    }
