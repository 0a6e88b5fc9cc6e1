"""
Order endpoints: place, list, inspect and cancel the caller's orders.

Domain errors (EmptyCartError, InsufficientStockError, InvalidStateError,
NotFoundError, StorageError) propagate to the handler in main.py, which maps
them to 400/400/400/404/500.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, pagination_params, require_user
from domain.enums import OrderStatus
from domain.pricing import money_to_json
from domain.responses import success_response, paginated_response
from models import OrderOut, dump
from services import order_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("")
async def list_orders(
    page: Pagination = Depends(pagination_params),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await order_service.list_user_orders(
        db,
        user_id=user.id,
        limit=page["limit"],
        offset=page["offset"],
        status=order_status.value if order_status else None,
    )
    return paginated_response(
        [dump(OrderOut, o) for o in orders],
        page=page["page"],
        limit=page["limit"],
        total=total,
    )


@router.get("/stats")
async def order_stats(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await order_service.get_order_stats(db, user_id=user.id)
    return success_response(
        data={
            "totalOrders": stats["total_orders"],
            "totalSpent": money_to_json(stats["total_spent"]),
            "ordersByStatus": stats["orders_by_status"],
        }
    )


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.get_user_order(db, user_id=user.id, order_id=order_id)
    return success_response(data=dump(OrderOut, order))


@router.post("", status_code=status.HTTP_201_CREATED)
async def place_order(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.place_order(db, user_id=user.id)
    return success_response(data={"message": "Order placed successfully", "order": dump(OrderOut, order)})


@router.put("/{order_id}/cancel")
async def cancel_order(
    order_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    result = await order_service.cancel_order(db, user_id=user.id, order_id=order_id)
    return success_response(data={"message": "Order cancelled successfully", "orderId": result["order_id"]})
