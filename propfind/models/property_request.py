import uuid
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from propfind.db.base import Base


class RequestStatus(str, Enum):
    """Lifecycle of an access request: pending, then exactly one owner decision."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, target: "RequestStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


TERMINAL_STATUSES = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})

ALLOWED_TRANSITIONS = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}


class PropertyRequest(Base):
    """
    A renter's request to contact a property owner.

    Attributes:
        status: 'pending', 'approved' or 'rejected'
        chat_enabled: derived, true iff the owner approved
    """
    __tablename__ = "property_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    property_id = Column(Integer, ForeignKey("community_listings.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value, index=True)
    message = Column(Text, nullable=False)
    response_message = Column(Text, nullable=True)

    requested_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def chat_enabled(self) -> bool:
        return self.status == RequestStatus.APPROVED.value

    def __repr__(self):
        return f"<PropertyRequest(id='{self.id}', property_id={self.property_id}, status='{self.status}')>"
