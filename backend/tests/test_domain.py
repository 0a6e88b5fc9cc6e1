"""
Tests for pure domain helpers: money rounding, status transitions, response envelopes.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from decimal import Decimal

import pytest

from domain.enums import OrderStatus, can_advance
from domain.pricing import lines_total, money_to_json, round_money
from domain.responses import paginated_response, success_response


class TestPricing:

    @pytest.mark.unit
    @pytest.mark.parametrize("raw,expected", [
        ("2.675", "2.68"),
        ("2.665", "2.67"),
        ("0.005", "0.01"),
        ("10", "10.00"),
        (1.005, "1.01"),
    ])
    def test_round_half_up(self, raw, expected):
        assert round_money(raw) == Decimal(expected)

    @pytest.mark.unit
    def test_lines_total_rounds_once(self):
        # 3 × 0.335 = 1.005 -> 1.01; rounding each line first would give 1.02
        assert lines_total([(Decimal("0.335"), 3)]) == Decimal("1.01")

    @pytest.mark.unit
    def test_lines_total_of_nothing(self):
        assert lines_total([]) == Decimal("0.00")

    @pytest.mark.unit
    def test_money_to_json(self):
        assert money_to_json(Decimal("25.50")) == 25.5
        assert money_to_json(None) == 0.0


class TestOrderStatusTransitions:

    @pytest.mark.unit
    @pytest.mark.parametrize("current,target", [
        ("PENDING", "PROCESSING"),
        ("PENDING", "SHIPPED"),
        ("PENDING", "DELIVERED"),
        ("PROCESSING", "SHIPPED"),
        ("SHIPPED", "DELIVERED"),
    ])
    def test_forward_moves(self, current, target):
        assert can_advance(OrderStatus(current), OrderStatus(target)) is True

    @pytest.mark.unit
    @pytest.mark.parametrize("current,target", [
        ("PROCESSING", "PENDING"),
        ("SHIPPED", "PROCESSING"),
        ("PENDING", "PENDING"),
        ("PENDING", "CANCELLED"),
        ("DELIVERED", "SHIPPED"),
        ("CANCELLED", "PROCESSING"),
        ("CANCELLED", "PENDING"),
    ])
    def test_illegal_moves(self, current, target):
        assert can_advance(OrderStatus(current), OrderStatus(target)) is False


class TestResponseEnvelopes:

    @pytest.mark.unit
    def test_success_without_meta(self):
        assert success_response({"id": 1}) == {"success": True, "data": {"id": 1}}

    @pytest.mark.unit
    def test_paginated_meta(self):
        body = paginated_response(["a", "b"], page=2, limit=2, total=5)
        assert body["meta"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}
        assert body["data"] == ["a", "b"]

    @pytest.mark.unit
    def test_paginated_total_defaults_to_len(self):
        assert paginated_response([], page=1, limit=10)["meta"]["pages"] == 0
