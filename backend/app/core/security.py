"""
Security utilities for password hashing, session tokens and JWT verification.
"""
from datetime import datetime, timedelta
from typing import Optional
import hashlib
import secrets
import bcrypt
from jose import JWTError, jwt
from app.core.config import settings


def _pre_hash_password(password: str) -> bytes:
    """
    Pre-hash password with SHA256 to support passwords longer than 72 bytes.
    Returns bytes (32 bytes) which is well under bcrypt's 72-byte limit.
    """
    return hashlib.sha256(password.encode('utf-8')).digest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    if not hashed_password:
        return False
    pre_hashed = _pre_hash_password(plain_password)
    return bcrypt.checkpw(pre_hashed, hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password with bcrypt after the SHA256 pre-hash."""
    pre_hashed = _pre_hash_password(password)
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pre_hashed, salt)
    return hashed.decode('utf-8')


def generate_session_token() -> str:
    """Opaque 64-character bearer token."""
    return secrets.token_hex(32)


def session_expiry(now: Optional[datetime] = None) -> datetime:
    """When a session issued now stops being valid."""
    now = now or datetime.utcnow()
    return now + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)


def decode_supabase_token(token: str, secret: str) -> Optional[dict]:
    """Decode and verify a Supabase-issued JWT."""
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[settings.ALGORITHM],
            audience="authenticated",
        )
    except JWTError:
        return None
