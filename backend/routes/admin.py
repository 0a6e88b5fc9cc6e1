"""
Admin endpoints: dashboard, users, orders and sales analytics.

All routes require an ADMIN bearer token.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from db_models import Order, User
from deps import Pagination, pagination_params, require_admin
from domain.constants import ORDER_SORT_FIELDS, DEFAULT_ANALYTICS_PERIOD
from domain.enums import OrderStatus, Role
from domain.pricing import money_to_json
from domain.responses import success_response, paginated_response
from models import OrderOut, ProductOut, UserOut, OrderStatusUpdateRequest, UserRoleUpdateRequest, dump
from services import admin_service
from utils.validators import validate_sort

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _order_with_customer(order: Order) -> dict:
    data = dump(OrderOut, order)
    data["user"] = {"name": order.user.name, "email": order.user.email} if order.user else None
    return data


@router.get("/dashboard")
async def dashboard(db: AsyncSession = Depends(get_db)):
    stats = await admin_service.get_dashboard(db, low_stock_threshold=settings.low_stock_threshold)
    overview = stats["overview"]
    return success_response(
        data={
            "overview": {
                "totalUsers": overview["total_users"],
                "totalProducts": overview["total_products"],
                "totalOrders": overview["total_orders"],
                "totalRevenue": money_to_json(overview["total_revenue"]),
                "pendingOrders": overview["pending_orders"],
                "lowStockProducts": overview["low_stock_products"],
            },
            "recentOrders": [_order_with_customer(o) for o in stats["recent_orders"]],
        }
    )


@router.get("/users")
async def list_users(
    page: Pagination = Depends(pagination_params),
    search: Optional[str] = Query(None, max_length=200),
    role: Optional[Role] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await admin_service.list_users(
        db,
        limit=page["limit"],
        offset=page["offset"],
        search=search,
        role=role.value if role else None,
    )
    items = [
        {
            **dump(UserOut, row["user"]),
            "counts": {
                "orders": row["counts"]["orders"],
                "cartItems": row["counts"]["cart_items"],
                "wishlistItems": row["counts"]["wishlist_items"],
            },
        }
        for row in rows
    ]
    return paginated_response(items, page=page["page"], limit=page["limit"], total=total)


@router.put("/users/{user_id}/role")
async def update_user_role(
    user_id: int,
    request: UserRoleUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    user: User = await admin_service.update_user_role(db, user_id=user_id, role=request.role)
    await db.commit()
    return success_response(data={"message": "User role updated successfully", "user": dump(UserOut, user)})


@router.get("/orders")
async def list_orders(
    page: Pagination = Depends(pagination_params),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    min_amount: Optional[float] = Query(None, alias="minAmount", ge=0),
    max_amount: Optional[float] = Query(None, alias="maxAmount", ge=0),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
):
    sort_by, sort_order = validate_sort(sort_by, sort_order, ORDER_SORT_FIELDS)
    orders, total = await admin_service.list_orders(
        db,
        limit=page["limit"],
        offset=page["offset"],
        status=order_status.value if order_status else None,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return paginated_response(
        [_order_with_customer(o) for o in orders],
        page=page["page"],
        limit=page["limit"],
        total=total,
    )


@router.put("/orders/{order_id}/status")
async def update_order_status(
    order_id: int,
    request: OrderStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    order = await admin_service.update_order_status(db, order_id=order_id, status=request.status)
    return success_response(
        data={"message": "Order status updated successfully", "order": _order_with_customer(order)}
    )


@router.get("/analytics")
async def sales_analytics(
    period: str = Query(DEFAULT_ANALYTICS_PERIOD),
    db: AsyncSession = Depends(get_db),
):
    stats = await admin_service.get_sales_analytics(db, period=period)
    return success_response(
        data={
            "period": stats["period"],
            "salesByDay": [
                {"date": row["date"], "orders": row["orders"], "revenue": money_to_json(row["revenue"])}
                for row in stats["sales_by_day"]
            ],
            "topProducts": [
                {
                    "productId": row["product_id"],
                    "quantity": row["quantity"],
                    "orderCount": row["order_count"],
                    "product": dump(ProductOut, row["product"]) if row["product"] else None,
                }
                for row in stats["top_products"]
            ],
            "revenue": {
                "total": money_to_json(stats["revenue"]["total"]),
                "average": money_to_json(stats["revenue"]["average"]),
                "orderCount": stats["revenue"]["order_count"],
            },
            "ordersByStatus": stats["orders_by_status"],
        }
    )
