"""
Authentication Service - bearer token verification against the configured
identity provider (Supabase Auth or Clerk).

Both providers issue JWTs; only the verification key differs. Profile
bookkeeping (get-or-create, contact sync, onboarding flag) is shared.
"""
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..exceptions import AuthenticationError
from ..models import UserProfile

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Fields a profile update may never touch
PROTECTED_PROFILE_FIELDS = {"id", "created_at", "updated_at"}


class AuthenticatedUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    session_id: Optional[str] = None
    claims: Dict[str, Any] = Field(default_factory=dict)


class IdentityProvider:
    """Base class: subclasses implement ``verify_token`` and ``sign_out``."""

    name = "base"

    async def verify_token(self, token: str) -> AuthenticatedUser:
        raise NotImplementedError

    async def get_current_user(self, token: Optional[str]) -> AuthenticatedUser:
        if not token:
            raise AuthenticationError()
        try:
            return await self.verify_token(token)
        except JWTError as e:
            raise AuthenticationError("Invalid or expired token", cause=e)

    async def get_profile(self, db: AsyncSession, user: AuthenticatedUser) -> UserProfile:
        """Get or create the profile row; identity details only fill gaps."""
        profile = await db.get(UserProfile, user.id)
        if profile is None:
            profile = UserProfile(
                id=user.id,
                email=user.email,
                full_name=user.full_name,
                avatar_url=user.avatar_url,
                has_completed_onboarding=False,
            )
            db.add(profile)
            await db.flush()
            logger.info(f"Created profile for user {user.id} ({self.name})")
            return profile

        if user.email and profile.email != user.email:
            profile.email = user.email
        if user.full_name and not profile.full_name:
            profile.full_name = user.full_name
        if user.avatar_url and not profile.avatar_url:
            profile.avatar_url = user.avatar_url
        await db.flush()
        return profile

    async def update_profile(self, db: AsyncSession, user: AuthenticatedUser, updates: Dict[str, Any]) -> UserProfile:
        """
        Apply profile updates. ``has_completed_onboarding`` only changes when
        the update sets it explicitly, and never goes back to False once set.
        """
        profile = await self.get_profile(db, user)
        completed = profile.has_completed_onboarding
        for field, value in updates.items():
            if field in PROTECTED_PROFILE_FIELDS or not hasattr(UserProfile, field):
                continue
            setattr(profile, field, value)
        profile.has_completed_onboarding = bool(completed or updates.get("has_completed_onboarding"))
        await db.flush()
        return profile

    async def sign_out(self, user: AuthenticatedUser, token: str) -> None:
        raise NotImplementedError


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth: HS256 tokens signed with the project JWT secret."""

    name = "supabase"

    def __init__(self, jwt_secret: str, supabase_url: str = "", api_key: str = ""):
        self.jwt_secret = jwt_secret
        self.supabase_url = supabase_url.rstrip("/")
        self.api_key = api_key

    async def verify_token(self, token: str) -> AuthenticatedUser:
        if not self.jwt_secret:
            raise AuthenticationError("SUPABASE_JWT_SECRET is not configured")
        claims = jwt.decode(token, self.jwt_secret, algorithms=["HS256"], audience="authenticated")
        metadata = claims.get("user_metadata") or {}
        return AuthenticatedUser(
            id=claims["sub"],
            email=claims.get("email"),
            full_name=metadata.get("full_name") or metadata.get("name"),
            avatar_url=metadata.get("avatar_url"),
            session_id=claims.get("session_id"),
            claims=claims,
        )

    async def sign_out(self, user: AuthenticatedUser, token: str) -> None:
        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.post(
                f"{self.supabase_url}/auth/v1/logout",
                headers={"Authorization": f"Bearer {token}", "apikey": self.api_key},
            )
        if response.status_code not in (200, 204):
            logger.warning(f"Supabase sign-out for {user.id} returned {response.status_code}")


class ClerkIdentityProvider(IdentityProvider):
    """Clerk: RS256 session tokens checked against the instance JWKS."""

    name = "clerk"

    def __init__(self, jwks_url: str, issuer: str = "", secret_key: str = "", api_url: str = "https://api.clerk.com/v1"):
        self.jwks_url = jwks_url
        self.issuer = issuer or None
        self.secret_key = secret_key
        self.api_url = api_url.rstrip("/")
        self._jwks: Optional[Dict[str, Any]] = None

    async def _fetch_jwks(self) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.get(self.jwks_url)
            response.raise_for_status()
            return response.json()

    async def _signing_key(self, kid: Optional[str]) -> Dict[str, Any]:
        for refresh in (False, True):
            if self._jwks is None or refresh:
                try:
                    self._jwks = await self._fetch_jwks()
                except httpx.HTTPError as e:
                    raise AuthenticationError("Could not fetch signing keys", cause=e)
            for key in self._jwks.get("keys", []):
                if key.get("kid") == kid:
                    return key
        raise AuthenticationError("Unknown token signing key")

    async def verify_token(self, token: str) -> AuthenticatedUser:
        if not self.jwks_url:
            raise AuthenticationError("CLERK_JWKS_URL is not configured")
        header = jwt.get_unverified_header(token)
        key = await self._signing_key(header.get("kid"))
        claims = jwt.decode(
            token, key,
            algorithms=["RS256"],
            issuer=self.issuer,
            options={"verify_aud": False},
        )
        return AuthenticatedUser(
            id=claims["sub"],
            email=claims.get("email"),
            full_name=claims.get("name"),
            avatar_url=claims.get("image_url"),
            session_id=claims.get("sid"),
            claims=claims,
        )

    async def sign_out(self, user: AuthenticatedUser, token: str) -> None:
        if not (self.secret_key and user.session_id):
            logger.info(f"Clerk sign-out for {user.id} is client-side only")
            return
        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.post(
                f"{self.api_url}/sessions/{user.session_id}/revoke",
                headers={"Authorization": f"Bearer {self.secret_key}"},
            )
        if response.status_code != 200:
            logger.warning(f"Clerk session revoke for {user.id} returned {response.status_code}")


_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    global _provider
    if _provider is None:
        settings = get_settings()
        if settings.auth_provider == "clerk":
            _provider = ClerkIdentityProvider(
                jwks_url=settings.clerk_jwks_url,
                issuer=settings.clerk_issuer,
                secret_key=settings.clerk_secret_key,
                api_url=settings.clerk_api_url,
            )
        else:
            _provider = SupabaseIdentityProvider(
                jwt_secret=settings.supabase_jwt_secret,
                supabase_url=settings.supabase_url,
                api_key=settings.supabase_service_role_key,
            )
        logger.info(f"Using {_provider.name} identity provider")
    return _provider


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AuthenticatedUser:
    """FastAPI dependency: verified user with a profile row guaranteed to exist."""
    user = await provider.get_current_user(credentials.credentials if credentials else None)
    await provider.get_profile(db, user)
    return user
