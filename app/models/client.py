import enum
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Numeric, Boolean, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base
from .types import EncryptedString


class PaymentType(str, enum.Enum):
    PIX = "pix"
    LINK = "link"


class Client(Base):
    """IPTV subscriber of a reseller."""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    whatsapp_number = Column(EncryptedString, nullable=True)
    due_date = Column(Date, nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    price_value = Column(Numeric(10, 2), nullable=False, default=0)
    payment_type = Column(Enum(PaymentType), nullable=False, default=PaymentType.PIX)
    payment_token = Column(String(64), unique=True, nullable=True, index=True)

    # Panel-side subscriber identifiers
    username = Column(String(255), nullable=True)
    suffix = Column(String(255), nullable=True)  # comma-separated for multi-screen

    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)
    server_id = Column(Integer, ForeignKey("servers.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User", back_populates="clients")
    plan = relationship("Plan", back_populates="clients")
    server = relationship("Server")
    payments = relationship("Payment", back_populates="client")
