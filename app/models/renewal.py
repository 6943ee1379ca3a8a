import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class RetryStatus(str, enum.Enum):
    PENDING = "pending"
    EXHAUSTED = "exhausted"
    RESOLVED = "resolved"


class ActivityStatus(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"


class RenewalRetryQueueEntry(Base):
    """
    Failed renewal awaiting an external retry sweep.

    Written once by the renewal orchestrator; attempt/status/next_retry_at belong
    to the consumer, which must resubmit payload verbatim.
    """
    __tablename__ = "renewal_retry_queue"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    attempt = Column(Integer, nullable=False, default=1)
    next_retry_at = Column(DateTime(timezone=True), nullable=False, index=True)
    payload = Column(JSONB, nullable=False, default=dict)
    last_error = Column(Text, nullable=True)
    status = Column(Enum(RetryStatus), nullable=False, default=RetryStatus.PENDING)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    client = relationship("Client")


class ActivityLog(Base):
    """Append-only audit trail"""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(50), nullable=False, index=True)
    status = Column(Enum(ActivityStatus), nullable=False)
    details = Column(JSONB, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
