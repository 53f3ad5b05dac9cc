"""
Auth Router - current identity and sign-out.

Sign-in itself happens against Supabase Auth or Clerk directly; this API
only verifies the bearer tokens they issue.
"""
from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..services.auth import (
    AuthenticatedUser,
    IdentityProvider,
    bearer_scheme,
    get_current_user,
    get_identity_provider,
)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    has_completed_onboarding: bool = False
    provider: str


class MessageResponse(BaseModel):
    message: str
    success: bool = True


@router.get("/me", response_model=SessionUser)
async def get_me(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    provider: IdentityProvider = Depends(get_identity_provider)
):
    profile = await provider.get_profile(db, current_user)
    await db.commit()
    return SessionUser(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        avatar_url=profile.avatar_url,
        has_completed_onboarding=profile.has_completed_onboarding,
        provider=provider.name,
    )


@router.post("/sign-out", response_model=MessageResponse)
async def sign_out(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    current_user: AuthenticatedUser = Depends(get_current_user),
    provider: IdentityProvider = Depends(get_identity_provider)
):
    """End the session with the identity provider."""
    await provider.sign_out(current_user, credentials.credentials)
    return MessageResponse(message="Signed out")
