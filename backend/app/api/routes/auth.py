"""
Authentication routes for register, login, logout and the current user.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.user import UserRegister, UserLogin, AuthResponse, LogoutResponse, UserResponse
from app.models.user import User
from app.core.auth import AuthError, AuthProvider
from app.api.dependencies import get_auth, get_bearer_token, get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_http_error(error: AuthError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    auth: AuthProvider = Depends(get_auth),
    db: Session = Depends(get_db)
):
    """Register a new user and start a session."""
    try:
        user, token = await auth.register(user_data.email, user_data.password, user_data.name, db)
    except AuthError as e:
        raise _auth_http_error(e)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    auth: AuthProvider = Depends(get_auth),
    db: Session = Depends(get_db)
):
    """Check credentials and issue a bearer token."""
    try:
        user, token = await auth.login(credentials.email, credentials.password, db)
    except AuthError as e:
        raise _auth_http_error(e)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    current_user: User = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
    auth: AuthProvider = Depends(get_auth),
    db: Session = Depends(get_db)
):
    """Invalidate the bearer token used for this request."""
    try:
        await auth.logout(token, db)
    except AuthError as e:
        raise _auth_http_error(e)
    return LogoutResponse(success=True)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user
