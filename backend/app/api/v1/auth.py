"""Authentication endpoints: login, register, logout, me, change-password."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.deps import get_current_user
from app.core.rate_limit import (
    RateLimiter,
    clear_failed_logins,
    is_account_locked,
    record_failed_login,
)
from app.database import get_db
from app.models import User
from app.schemas.auth import ChangePasswordRequest, LoginRequest, RegisterRequest, UserRead
from app.services.auth import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_login_rate_limit = RateLimiter(
    max_calls=settings.LOGIN_RATE_LIMIT, window_seconds=60, key="login"
)


def _token_payload(user: User, token: str, expires_in: int) -> dict:
    return {
        "token": token,
        "tokenType": "bearer",
        "expiresIn": expires_in,
        "user": UserRead.model_validate(user).model_dump(mode="json", by_alias=True),
    }


@router.post("/login", response_model=dict)
async def login(
    data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _rl: None = Depends(_login_rate_limit),
):
    """Authenticate user and return JWT."""
    if is_account_locked(data.user_name):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Account temporarily locked due to too many failed attempts. Please try again in 15 minutes.",
        )

    svc = AuthService(db)
    result = await svc.login(data.user_name, data.password)
    if result is None:
        record_failed_login(data.user_name)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    clear_failed_logins(data.user_name)
    user, token, expires_in = result
    return {
        "success": True,
        "message": "Login successful",
        "data": _token_payload(user, token, expires_in),
    }


@router.post("/register", response_model=dict, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    svc = AuthService(db)
    user, token, expires_in = await svc.register(data.user_name, data.password)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": _token_payload(user, token, expires_in),
    }


@router.post("/logout", response_model=dict)
async def logout(current_user: Annotated[User, Depends(get_current_user)]):
    """Tokens are stateless; the client discards its copy."""
    logger.info("User logged out: %s", current_user.user_name)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=dict)
async def get_me(current_user: Annotated[User, Depends(get_current_user)]):
    """Get the current authenticated user's profile."""
    return {
        "success": True,
        "data": {"user": UserRead.model_validate(current_user).model_dump(mode="json", by_alias=True)},
    }


@router.put("/change-password", response_model=dict)
async def change_password(
    data: ChangePasswordRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Change the current user's password."""
    svc = AuthService(db)
    if not await svc.change_password(current_user, data.current_password, data.new_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    return {"success": True, "message": "Password changed successfully"}
