"""Seed the database with an admin, demo customers and a starter catalog.

Usage (from backend/):
    python -m scripts.seed            # wipe and seed
    python -m scripts.seed --keep     # seed without clearing existing rows
"""
import argparse
import asyncio
import logging
from decimal import Decimal

from sqlalchemy import delete

from database import async_session, init_db
from db_models import User, Product, CartItem, WishlistItem, Order, OrderItem
from domain.enums import Role
from middleware.auth import hash_password

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("seed")

ADMIN = {"email": "admin@storefront.local", "name": "System Administrator", "password": "admin123"}
CUSTOMERS = [
    {"email": "john.doe@example.com", "name": "John Doe"},
    {"email": "jane.smith@example.com", "name": "Jane Smith"},
    {"email": "mike.johnson@example.com", "name": "Mike Johnson"},
]
CUSTOMER_PASSWORD = "user123"

PRODUCTS = [
    ("Wireless Headphones", "Over-ear Bluetooth headphones with noise cancellation.", "199.99", 50),
    ("Mechanical Keyboard", "Tenkeyless keyboard with hot-swappable switches.", "129.50", 30),
    ("USB-C Hub", "7-in-1 hub with HDMI, SD card reader and PD charging.", "49.99", 120),
    ("Running Shoes", "Lightweight trainers for daily mileage.", "89.00", 8),
    ("Coffee Grinder", "Conical burr grinder with 40 grind settings.", "74.25", 5),
    ("Yoga Mat", "6mm non-slip mat with carrying strap.", "25.00", 200),
]


async def seed(keep: bool) -> None:
    await init_db()
    async with async_session() as db:
        if not keep:
            logger.info("Clearing existing data...")
            for model in (OrderItem, Order, CartItem, WishlistItem, Product, User):
                await db.execute(delete(model))

        db.add(
            User(
                email=ADMIN["email"],
                name=ADMIN["name"],
                password_hash=hash_password(ADMIN["password"]),
                role=Role.ADMIN.value,
            )
        )
        customer_hash = hash_password(CUSTOMER_PASSWORD)
        for c in CUSTOMERS:
            db.add(User(email=c["email"], name=c["name"], password_hash=customer_hash, role=Role.USER.value))

        for name, description, price, stock in PRODUCTS:
            db.add(Product(name=name, description=description, price=Decimal(price), stock=stock))

        await db.commit()

    logger.info(f"Seeded 1 admin, {len(CUSTOMERS)} customers, {len(PRODUCTS)} products")
    logger.info(f"Admin login: {ADMIN['email']} / {ADMIN['password']}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--keep", action="store_true", help="do not clear existing rows first")
    args = parser.parse_args()
    asyncio.run(seed(args.keep))
