"""Auth account (sign-in identity) and the public user profile."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.session import Base
from app.utils.dates import utcnow
from app.utils.theme import DEFAULT_THEME


def new_uid() -> str:
    return uuid.uuid4().hex


class AuthAccount(Base):
    """Credentials and verification state. Exists before its profile does."""
    __tablename__ = "auth_accounts"

    uid = Column(String(64), primary_key=True, default=new_uid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=False, default="")
    email_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    profile = relationship("UserProfile", back_populates="account", uselist=False, cascade="all, delete-orphan")


class UserProfile(Base):
    __tablename__ = "users"

    uid = Column(String(64), ForeignKey("auth_accounts.uid", ondelete="CASCADE"), primary_key=True)
    email = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=False)
    address = Column(String(32), nullable=False, index=True)
    bio = Column(Text, nullable=False, default="")
    theme = Column(String(64), nullable=False, default=DEFAULT_THEME)
    post_count = Column(Integer, nullable=False, default=0)
    total_likes_received = Column(Integer, nullable=False, default=0)
    address_last_changed_at = Column(DateTime, nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    account = relationship("AuthAccount", back_populates="profile")
