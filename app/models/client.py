"""Client model — one restaurant brand, its portal content and sync state."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base

SECTION_NAMES = (
    "metrics",
    "requests",
    "campaigns",
    "assets",
    "huddles",
    "social_posts",
    "reviews",
    "positive_themes",
    "negative_themes",
    "quick_links",
)

SYNC_STATUSES = ("idle", "syncing", "success", "error")

DEFAULT_BRAND_THEME = {
    "primary": "#1f2937",
    "primaryLight": "#374151",
    "secondary": "#6b7280",
    "accent": "#f59e0b",
    "accentLight": "#fef3c7",
    "bg": "#f9fafb",
    "cardBg": "#ffffff",
    "textDark": "#111827",
    "muted": "#9ca3af",
}


class Client(Base):
    __tablename__ = "clients"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    portal_token = Column(String(64), nullable=False, unique=True, index=True)
    location = Column(String(255), default="")
    tagline = Column(String(500))
    logo_url = Column(String(1000))

    # Presentation
    brand_color = Column(String(20), default="#1f2937")
    brand_theme = Column(JSON, default=lambda: dict(DEFAULT_BRAND_THEME))

    # Health
    overall_health = Column(String(20), default="on-track")
    health_summary = Column(Text, default="")
    top_issue = Column(Text, default="")
    action_needed = Column(Text, default="")
    next_huddle = Column(String(255))

    # JSON-document sections (whole-list replacement only)
    metrics = Column(JSON, default=list)
    requests = Column(JSON, default=list)
    campaigns = Column(JSON, default=list)
    assets = Column(JSON, default=list)
    huddles = Column(JSON, default=list)
    social_posts = Column(JSON, default=list)
    reviews = Column(JSON, default=list)
    positive_themes = Column(JSON, default=list)
    negative_themes = Column(JSON, default=list)
    quick_links = Column(JSON, default=list)

    # Sync-derived
    raw_metrics = Column(JSON, default=dict)
    metrics_narrative = Column(Text)
    weekly_vibe = Column(Text)
    recent_reviews = Column(JSON, default=list)
    guest_happiness = Column(JSON)
    last_sync_at = Column(UTCDateTime)
    sync_status = Column(String(20), nullable=False, default="idle")

    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    last_accessed_at = Column(UTCDateTime)

    integrations = relationship(
        "ClientIntegration",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="ClientIntegration.provider",
    )

    __table_args__ = (Index("ix_clients_sync_status", "sync_status"),)
