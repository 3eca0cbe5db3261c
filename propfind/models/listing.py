from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Text
from propfind.db.base import Base


class Listing(Base):
    """
    A community-uploaded property listing.

    The uploader is the owner who receives and answers access requests.
    """
    __tablename__ = "community_listings"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    location = Column(String(200), nullable=False)
    state = Column(String(50), nullable=True)
    price = Column(Float, nullable=False)
    image_url = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def snapshot(self) -> dict:
        """Denormalized copy of the listing, stored on receipts."""
        return {
            "id": self.id,
            "title": self.title,
            "location": self.location,
            "state": self.state,
            "price": self.price,
            "image_url": self.image_url,
            "description": self.description,
        }

    def __repr__(self):
        return f"<Listing(id={self.id}, title='{self.title}', owner_id={self.owner_id})>"
