from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class Reminder(Base):
    """
    Daily message rule relative to a client's due date.

    days_offset < 0 fires before the due date, 0 on it, > 0 after it.
    send_time is "HH:MM" in the business timezone.
    """
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    template_id = Column(Integer, ForeignKey("message_templates.id", ondelete="SET NULL"), nullable=True)
    days_offset = Column(Integer, nullable=False, default=0)
    send_time = Column(String(5), nullable=False, default="09:00", index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_sent_date = Column(Date, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    template = relationship("MessageTemplate")
