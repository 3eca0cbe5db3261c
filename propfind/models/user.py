from sqlalchemy import Boolean, Column, Integer, String, DateTime
from datetime import datetime, timezone
from propfind.db.base import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), index=True)
    # Stored lower-case, the gates key on the same normalized value
    email = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(150), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    wallet_address = Column(String(42), nullable=True)
    wallet_connected_at = Column(DateTime(timezone=True), nullable=True)
    token_version = Column(Integer, default=1, nullable=False)  # invalidate old JWTs
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    last_active_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
