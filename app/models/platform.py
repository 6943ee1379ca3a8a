from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Boolean, Enum, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base
from .payment import PaymentStatus


class PlatformPlan(Base):
    """Subscription tier a reseller buys from the platform itself."""
    __tablename__ = "platform_plans"
    __table_args__ = (
        CheckConstraint("duration_days >= 1", name="ck_platform_plans_duration_days_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    duration_days = Column(Integer, nullable=False, default=30)
    max_clients = Column(Integer, nullable=True)  # None = unlimited
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PlatformPayment(Base):
    """
    One subscription checkout. Its id is the Mercado Pago external_reference,
    since mp_payment_id is only known once the gateway notifies.
    """
    __tablename__ = "platform_payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    platform_plan_id = Column(Integer, ForeignKey("platform_plans.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    mp_status = Column(String(50), nullable=True)
    mp_payment_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    plan = relationship("PlatformPlan")
