from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base
from .types import EncryptedString


class Profile(Base):
    """Per-owner integration settings and platform subscription state."""
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("messages_per_minute >= 1", name="ck_profiles_messages_per_minute_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    # WuzAPI messaging gateway
    wuzapi_url = Column(String(500), nullable=True)
    wuzapi_token = Column(EncryptedString, nullable=True)
    messages_per_minute = Column(Integer, nullable=False, default=5)

    pix_key = Column(String(255), nullable=True)
    mercadopago_access_token = Column(EncryptedString, nullable=True)

    # Reseller's own subscription to the platform
    subscription_end = Column(DateTime(timezone=True), nullable=True)
    max_clients = Column(Integer, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="profile")
