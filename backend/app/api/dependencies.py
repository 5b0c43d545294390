"""
Shared route dependencies: auth provider, generator and the current user.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from app.core.auth import AuthError, AuthProvider, get_auth_provider
from app.db.session import get_db
from app.models.user import User
from app.services.itinerary_generator import ItineraryGenerator, get_itinerary_generator

bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    """Extract the bearer token or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_auth() -> AuthProvider:
    return get_auth_provider()


def get_generator() -> ItineraryGenerator:
    return get_itinerary_generator()


async def get_current_user(
    token: str = Depends(get_bearer_token),
    auth: AuthProvider = Depends(get_auth),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user."""
    try:
        return await auth.resolve_user(token, db)
    except AuthError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None,
        )
