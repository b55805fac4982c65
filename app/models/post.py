"""Post card model."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.session import Base
from app.utils.dates import utcnow


class Post(Base):
    __tablename__ = "posts"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    author_uid = Column(String(64), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    author_address = Column(String(32), nullable=False)  # snapshot at write time, not refreshed on rename
    content = Column(Text, nullable=False)
    like_count = Column(Integer, nullable=False, default=0)
    deleted = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    author = relationship("UserProfile")
