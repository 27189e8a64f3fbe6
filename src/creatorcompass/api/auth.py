"""Auth API — creator accounts and token exchange.

- POST /auth/register → new account (201), 409 if the email is taken
- POST /auth/login    → email + password → access/refresh pair
- POST /auth/refresh  → refresh token → fresh pair
- GET  /auth/me       → the caller, with subscription status

The access token from /login is what EventSource sends as ?token= when
opening /api/notifications/sse or /api/analytics/sse.
"""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcompass.auth.dependencies import CurrentIdentity, get_current_user
from creatorcompass.auth.jwt import (
    REFRESH,
    TokenError,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from creatorcompass.auth.password import hash_password, verify_password
from creatorcompass.db.engine import get_db
from creatorcompass.db.models import User

router = APIRouter(prefix="/auth")


class Credentials(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str


class RegisterRequest(Credentials):
    name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8)


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserRead(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MeRead(UserRead):
    subscription_status: str


def _token_pair(user_id: str) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )


async def _user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    return await db.scalar(select(User).where(User.email == email))


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    if await _user_by_email(db, body.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=body.email,
        name=body.name,
        password_hash=hash_password(body.password),
        notification_preferences={},
        subscription=None,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@router.post("/login", response_model=TokenPair)
async def login(body: Credentials, db: AsyncSession = Depends(get_db)):
    user = await _user_by_email(db, body.email)
    # Same answer for unknown email and wrong password
    if (
        user is None
        or not user.password_hash
        or not verify_password(body.password, user.password_hash)
    ):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _token_pair(str(user.id))


@router.post("/refresh", response_model=TokenPair)
async def refresh(body: RefreshRequest):
    try:
        claims = verify_token(body.refresh_token, expected_type=REFRESH)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return _token_pair(claims["sub"])


@router.get("/me", response_model=MeRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await db.get(User, identity.user_uuid)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return MeRead(
        id=user.id,
        email=user.email,
        name=user.name,
        created_at=user.created_at,
        subscription_status=user.subscription.status if user.subscription else "none",
    )
