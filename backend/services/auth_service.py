"""
Account service: registration, credential checks and profiles.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import User
from domain.enums import Role
from domain.errors import ConflictError, UnauthorizedError
from middleware.auth import hash_password, verify_password

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    res = await db.execute(select(User).where(User.email == email))
    return res.scalar_one_or_none()


async def register(db: AsyncSession, *, email: str, password: str, name: str, role: Role = Role.USER) -> User:
    if await get_user_by_email(db, email):
        raise ConflictError("User already exists", details={"email": email})

    user = User(email=email, password_hash=hash_password(password), name=name, role=role.value)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Race: a concurrent registration claimed the email first.
        await db.rollback()
        raise ConflictError("User already exists", details={"email": email})

    logger.info(f"User {user.id} registered ({role.value})")
    return user


async def authenticate(db: AsyncSession, *, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.info(f"Failed login attempt for {email}")
        raise UnauthorizedError("Invalid credentials")
    return user
