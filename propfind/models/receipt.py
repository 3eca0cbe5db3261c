from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON
from propfind.db.base import Base


class Receipt(Base):
    """
    Display record for a simulated payment or contact request.

    The id and transaction hash are random strings generated by the service;
    they are not verifiable against any ledger.
    """
    __tablename__ = "receipts"

    id = Column(String(40), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Integer, nullable=False, index=True)
    user_address = Column(String(42), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    status = Column(String(20), nullable=False, default="pending")
    transaction_hash = Column(String(66), nullable=False)
    property_snapshot = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Receipt(id='{self.id}', property_id={self.property_id}, status='{self.status}')>"
