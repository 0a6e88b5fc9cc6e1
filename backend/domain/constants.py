"""
Domain constants used across services/routers.
"""
from decimal import Decimal

# Money is stored and reported with two decimal places.
CENTS = Decimal("0.01")

# Admin analytics windows (query value -> days)
ANALYTICS_PERIODS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}
DEFAULT_ANALYTICS_PERIOD = "30d"

# Sortable columns exposed to list endpoints
PRODUCT_SORT_FIELDS = ("created_at", "price", "name", "stock")
ORDER_SORT_FIELDS = ("created_at", "total", "status")
