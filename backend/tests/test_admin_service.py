"""
Unit tests for the admin service.

Tests: fulfilment state machine on status updates, dashboard overview,
user listing with counts, order filters and sales analytics.
"""
from decimal import Decimal

import pytest
from sqlalchemy import select

from db_models import Order
from domain.errors import InvalidStateError, NotFoundError, ValidationError
from services import admin_service, order_service


@pytest.fixture
def placed_order(db_session, customer, make_product, add_line):
    """Factory: place a one-line order for the customer."""
    async def _place(price="10.00", quantity=1, stock=10):
        product = await make_product(price=price, stock=stock)
        await add_line(customer, product, quantity)
        return await order_service.place_order(db_session, user_id=customer.id)

    return _place


class TestUpdateOrderStatus:

    @pytest.mark.unit
    async def test_forward_moves_allowed(self, db_session, placed_order):
        order = await placed_order()

        for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
            updated = await admin_service.update_order_status(db_session, order_id=order.id, status=status)
            assert updated.status == status

        assert updated.user.email == "customer@example.com"
        assert len(updated.items) == 1

    @pytest.mark.unit
    async def test_skipping_forward_is_allowed(self, db_session, placed_order):
        order = await placed_order()
        updated = await admin_service.update_order_status(db_session, order_id=order.id, status="SHIPPED")
        assert updated.status == "SHIPPED"

    @pytest.mark.unit
    async def test_backward_move_rejected(self, db_session, placed_order):
        order = await placed_order()
        oid = order.id
        await admin_service.update_order_status(db_session, order_id=oid, status="SHIPPED")

        with pytest.raises(InvalidStateError) as exc_info:
            await admin_service.update_order_status(db_session, order_id=oid, status="PROCESSING")

        assert exc_info.value.current_status == "SHIPPED"
        assert await db_session.scalar(select(Order.status).where(Order.id == oid)) == "SHIPPED"

    @pytest.mark.unit
    async def test_admin_cannot_cancel(self, db_session, placed_order, stock_of):
        order = await placed_order(quantity=2, stock=5)
        oid, pid = order.id, order.items[0].product_id

        with pytest.raises(InvalidStateError):
            await admin_service.update_order_status(db_session, order_id=oid, status="CANCELLED")

        assert await db_session.scalar(select(Order.status).where(Order.id == oid)) == "PENDING"
        assert await stock_of(pid) == 3

    @pytest.mark.unit
    async def test_terminal_orders_are_frozen(self, db_session, customer, placed_order):
        order = await placed_order()
        oid = order.id
        await order_service.cancel_order(db_session, user_id=customer.id, order_id=oid)

        with pytest.raises(InvalidStateError) as exc_info:
            await admin_service.update_order_status(db_session, order_id=oid, status="PROCESSING")
        assert exc_info.value.current_status == "CANCELLED"

    @pytest.mark.unit
    async def test_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            await admin_service.update_order_status(db_session, order_id=77, status="SHIPPED")


class TestDashboardAndLists:

    @pytest.mark.unit
    async def test_dashboard_overview(self, db_session, customer, admin, placed_order, make_product):
        first = await placed_order(price="10.00", quantity=2, stock=20)
        await placed_order(price="4.00", quantity=1, stock=3)
        await order_service.cancel_order(db_session, user_id=customer.id, order_id=first.id)
        await make_product(name="Untouched", stock=100)

        stats = await admin_service.get_dashboard(db_session, low_stock_threshold=5)
        overview = stats["overview"]

        assert overview["total_users"] == 2
        assert overview["total_products"] == 3
        assert overview["total_orders"] == 2
        assert Decimal(str(overview["total_revenue"])) == Decimal("4.00")
        assert overview["pending_orders"] == 1
        assert overview["low_stock_products"] == 1
        assert len(stats["recent_orders"]) == 2
        assert stats["recent_orders"][0].user.name == "Casey Customer"

    @pytest.mark.unit
    async def test_list_users_with_counts(self, db_session, customer, admin, placed_order):
        await placed_order()

        rows, total = await admin_service.list_users(db_session, search="casey")

        assert total == 1
        assert rows[0]["user"].id == customer.id
        assert rows[0]["counts"] == {"orders": 1, "cart_items": 0, "wishlist_items": 0}

        admins, total = await admin_service.list_users(db_session, role="ADMIN")
        assert total == 1
        assert admins[0]["user"].email == "admin@example.com"

    @pytest.mark.unit
    async def test_list_orders_filters(self, db_session, placed_order):
        await placed_order(price="5.00")
        big = await placed_order(price="50.00")

        orders, total = await admin_service.list_orders(db_session, min_amount=10)
        assert total == 1
        assert orders[0].id == big.id

        orders, total = await admin_service.list_orders(db_session, sort_by="total", sort_order="asc")
        assert total == 2
        assert [o.total for o in orders] == [Decimal("5.00"), Decimal("50.00")]

        _, total = await admin_service.list_orders(db_session, status="SHIPPED")
        assert total == 0

    @pytest.mark.unit
    async def test_update_user_role(self, db_session, customer):
        user = await admin_service.update_user_role(db_session, user_id=customer.id, role="ADMIN")
        assert user.role == "ADMIN"

        with pytest.raises(NotFoundError):
            await admin_service.update_user_role(db_session, user_id=9999, role="USER")


class TestSalesAnalytics:

    @pytest.mark.unit
    async def test_excludes_cancelled_orders(self, db_session, customer, placed_order):
        kept = await placed_order(price="10.00", quantity=3)
        dropped = await placed_order(price="99.00", quantity=1)
        await order_service.cancel_order(db_session, user_id=customer.id, order_id=dropped.id)

        stats = await admin_service.get_sales_analytics(db_session, period="7d")

        assert stats["period"] == "7d"
        assert Decimal(str(stats["revenue"]["total"])) == Decimal("30.00")
        assert stats["revenue"]["order_count"] == 1
        assert [row["product_id"] for row in stats["top_products"]] == [kept.items[0].product_id]
        assert stats["top_products"][0]["quantity"] == 3
        assert sum(row["orders"] for row in stats["sales_by_day"]) == 1
        assert stats["orders_by_status"] == {"PENDING": 1, "CANCELLED": 1}

    @pytest.mark.unit
    async def test_empty_window(self, db_session):
        stats = await admin_service.get_sales_analytics(db_session, period="30d")
        assert stats["sales_by_day"] == []
        assert stats["top_products"] == []
        assert stats["revenue"]["order_count"] == 0

    @pytest.mark.unit
    async def test_unknown_period_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await admin_service.get_sales_analytics(db_session, period="2w")
