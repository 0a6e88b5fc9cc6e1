"""
Auth endpoints: email/password registration and login.

Flow:
  1) POST /auth/register or /auth/login -> {token, user}
  2) Client sends Authorization: Bearer <token> on subsequent requests
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import require_user
from domain.responses import success_response
from middleware.auth import issue_access_token
from middleware.rate_limit import rate_limit
from models import RegisterRequest, LoginRequest, UserOut, dump
from services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _session_payload(user: User) -> dict:
    return {
        "token": issue_access_token(user_id=user.id, role=user.role),
        "tokenType": "Bearer",
        "user": dump(UserOut, user),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=10, window_seconds=60)),
):
    user = await auth_service.register(
        db,
        email=request.email,
        password=request.password,
        name=request.name,
    )
    await db.commit()
    await db.refresh(user)
    return success_response(data={"message": "User created successfully", **_session_payload(user)})


@router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=20, window_seconds=60)),
):
    user = await auth_service.authenticate(db, email=request.email, password=request.password)
    return success_response(data={"message": "Login successful", **_session_payload(user)})


@router.get("/profile")
async def get_profile(user: User = Depends(require_user)):
    return success_response(data=dump(UserOut, user))
