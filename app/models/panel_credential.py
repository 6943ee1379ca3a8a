import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base
from .types import EncryptedString


class PanelProvider(str, enum.Enum):
    SIGMA = "sigma"
    CLOUDNATION = "cloudnation"
    KOFFICE = "koffice"
    UNIPLAY = "uniplay"
    CLUB = "club"
    RUSH = "rush"
    PAINELFODA = "painelfoda"


class PanelCredential(Base):
    """Login for an IPTV reseller panel, used only to build renewal requests."""
    __tablename__ = "panel_credentials"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Stored as plain text so a provider removed from the enum still loads and is
    # rejected by the adapter registry instead of failing at query time.
    provider = Column(String(50), nullable=False)
    label = Column(String(255), nullable=True)
    domain = Column(String(255), nullable=True)
    username = Column(String(255), nullable=False)
    password = Column(EncryptedString, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    plans = relationship("Plan", back_populates="panel_credential")
