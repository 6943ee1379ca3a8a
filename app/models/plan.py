from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Boolean, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class Plan(Base):
    __tablename__ = "plans"
    __table_args__ = (
        CheckConstraint("duration_months >= 1", name="ck_plans_duration_months_positive"),
        CheckConstraint("num_screens >= 1", name="ck_plans_num_screens_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    duration_months = Column(Integer, nullable=False, default=1)
    num_screens = Column(Integer, nullable=False, default=1)
    panel_credential_id = Column(Integer, ForeignKey("panel_credentials.id", ondelete="SET NULL"), nullable=True)

    # Provider-specific
    package_id = Column(String(100), nullable=True)  # sigma plan code / painelfoda package
    rush_type = Column(String(20), nullable=True)  # IPTV | P2P

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    panel_credential = relationship("PanelCredential", back_populates="plans")
    clients = relationship("Client", back_populates="plan")


class Server(Base):
    __tablename__ = "servers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    cost_per_screen = Column(Numeric(10, 2), nullable=False, default=0)
    multiply_by_screens = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
