"""
Authentication providers.

Exactly one provider is active, chosen by AUTH_PROVIDER:
1. local: bcrypt passwords and opaque tokens in the auth_sessions table
2. supabase: Supabase Auth owns credentials; tokens are Supabase JWTs
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Tuple

import httpx
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import (
    decode_supabase_token, generate_session_token, get_password_hash,
    session_expiry, verify_password,
)
from app.models.auth_session import AuthSession
from app.models.user import User

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Authentication or registration failed; status_code is the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UserNotFound(AuthError):
    """Token is valid but its profile row no longer exists."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, status_code=404)


def default_display_name(email: str, name: Optional[str]) -> str:
    return name or email.split("@")[0]


class AuthProvider(ABC):
    """Interface implemented by every authentication backend."""

    @abstractmethod
    async def register(self, email: str, password: str, name: Optional[str], db: Session) -> Tuple[User, str]:
        """Create an account and return the user and a bearer token."""

    @abstractmethod
    async def login(self, email: str, password: str, db: Session) -> Tuple[User, str]:
        """Check credentials and return the user and a new bearer token."""

    @abstractmethod
    async def logout(self, token: str, db: Session) -> None:
        """Invalidate the token."""

    @abstractmethod
    async def resolve_user(self, token: str, db: Session) -> User:
        """Return the user owning a valid token or raise AuthError."""


class LocalAuthProvider(AuthProvider):
    """Self-hosted accounts with a session table."""

    def _issue_session(self, user: User, db: Session) -> str:
        token = generate_session_token()
        db.add(AuthSession(token=token, user_id=user.id, expires_at=session_expiry()))
        db.commit()
        return token

    async def register(self, email, password, name, db):
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            raise AuthError("Email already registered", status_code=400)

        user = User(
            email=email,
            display_name=default_display_name(email, name),
            hashed_password=get_password_hash(password),
        )
        db.add(user)
        db.flush()
        token = self._issue_session(user, db)
        db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user, token

    async def login(self, email, password, db):
        user = db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.hashed_password):
            raise AuthError("Invalid email or password")
        if not user.is_active:
            raise AuthError("User account is inactive", status_code=403)
        return user, self._issue_session(user, db)

    async def logout(self, token, db):
        db.query(AuthSession).filter(AuthSession.token == token).delete()
        db.commit()

    async def resolve_user(self, token, db):
        session = db.query(AuthSession).filter(AuthSession.token == token).first()
        if not session:
            raise AuthError("Invalid or expired token")
        if session.expires_at < datetime.utcnow():
            db.delete(session)
            db.commit()
            raise AuthError("Invalid or expired token")

        user = db.query(User).filter(User.id == session.user_id).first()
        if not user:
            raise UserNotFound()
        return user


class SupabaseAuthProvider(AuthProvider):
    """Credentials and tokens managed by Supabase Auth; profiles kept locally."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        jwt_secret: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.jwt_secret = jwt_secret
        self.timeout = timeout
        self.transport = transport

    def _headers(self, token: Optional[str] = None) -> dict:
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, path: str, token: Optional[str] = None, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(
                    method, f"{self.url}/auth/v1{path}", headers=self._headers(token), **kwargs
                )
        except httpx.HTTPError as e:
            logger.error(f"Supabase Auth request failed: {e}", exc_info=True)
            raise AuthError("Authentication service unavailable", status_code=503) from e

    def _upsert_profile(self, supabase_user: dict, db: Session, name: Optional[str] = None) -> User:
        external_id = supabase_user["id"]
        email = supabase_user.get("email") or ""
        user = db.query(User).filter(User.external_id == external_id).first()
        if user is None:
            user = db.query(User).filter(User.email == email).first()
        if user is None:
            metadata = supabase_user.get("user_metadata") or {}
            user = User(
                email=email,
                display_name=default_display_name(email, name or metadata.get("name")),
            )
            db.add(user)
        user.external_id = external_id
        db.commit()
        db.refresh(user)
        return user

    async def register(self, email, password, name, db):
        response = await self._request(
            "POST", "/signup", json={"email": email, "password": password, "data": {"name": name}}
        )
        if response.status_code >= 400:
            logger.warning(f"Supabase signup rejected: {response.status_code} {response.text}")
            raise AuthError("Registration rejected", status_code=400)

        payload = response.json()
        token = payload.get("access_token")
        if not token:
            # Email confirmation is enabled; no session until the user confirms
            raise AuthError("Check your email to confirm the account", status_code=400)
        user = self._upsert_profile(payload["user"], db, name=name)
        return user, token

    async def login(self, email, password, db):
        response = await self._request(
            "POST", "/token", params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code >= 400:
            raise AuthError("Invalid email or password")

        payload = response.json()
        user = self._upsert_profile(payload["user"], db)
        return user, payload["access_token"]

    async def logout(self, token, db):
        response = await self._request("POST", "/logout", token=token)
        if response.status_code >= 400:
            raise AuthError("Invalid or expired token")

    async def resolve_user(self, token, db):
        if self.jwt_secret:
            claims = decode_supabase_token(token, self.jwt_secret)
            if not claims or not claims.get("sub"):
                raise AuthError("Invalid or expired token")
            external_id = claims["sub"]
        else:
            response = await self._request("GET", "/user", token=token)
            if response.status_code >= 400:
                raise AuthError("Invalid or expired token")
            external_id = response.json()["id"]

        user = db.query(User).filter(User.external_id == external_id).first()
        if not user:
            raise UserNotFound()
        return user


def get_auth_provider() -> AuthProvider:
    """Build the provider selected by AUTH_PROVIDER."""
    if settings.AUTH_PROVIDER == "supabase":
        return SupabaseAuthProvider(
            url=settings.SUPABASE_URL,
            anon_key=settings.SUPABASE_ANON_KEY,
            jwt_secret=settings.SUPABASE_JWT_SECRET,
        )
    if settings.AUTH_PROVIDER != "local":
        raise ValueError(f"Unknown AUTH_PROVIDER '{settings.AUTH_PROVIDER}'")
    return LocalAuthProvider()
