"""
User model for authentication and user profiles.
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class User(BaseModel):
    """User profile; credentials live here only for the local auth provider."""
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=True)
    hashed_password = Column(String(255), nullable=True)
    external_id = Column(String(64), unique=True, nullable=True, index=True)  # Identity-provider subject (Supabase uid)
    avatar_url = Column(String(500), nullable=True)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")
    memberships = relationship("TripMember", back_populates="user", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="user")
