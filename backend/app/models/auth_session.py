"""
Session model backing the self-hosted bearer tokens.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class AuthSession(BaseModel):
    """Opaque bearer token issued at login or registration."""
    __tablename__ = "auth_sessions"

    token = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="sessions")
