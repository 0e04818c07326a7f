"""Integration model — one encrypted provider configuration per client."""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base

# Fixed provider set, in sync order
PROVIDERS = (
    "clickup",
    "google_analytics",
    "google_business",
    "google_search_console",
    "yelp",
)


class ClientIntegration(Base):
    __tablename__ = "client_integrations"
    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(50), nullable=False)
    config = Column(Text, nullable=False)  # AES-256-GCM token, never plaintext
    enabled = Column(Boolean, nullable=False, default=True)
    last_synced_at = Column(UTCDateTime)
    sync_error = Column(String(1000))
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    client = relationship("Client", back_populates="integrations")

    __table_args__ = (
        UniqueConstraint("client_id", "provider", name="uq_client_integration_provider"),
    )
