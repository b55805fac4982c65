"""Handle reservations: one row per taken @ddress."""
from sqlalchemy import Column, DateTime, ForeignKey, String

from app.db.session import Base
from app.utils.dates import utcnow


class AddressReservation(Base):
    __tablename__ = "addresses"

    handle = Column(String(32), primary_key=True)
    uid = Column(String(64), ForeignKey("auth_accounts.uid", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
