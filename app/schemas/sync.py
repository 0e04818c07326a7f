"""
schemas/sync.py — Sync run results, aggregated reviews, guest happiness

Called by: services/sync_service.py, services/review_aggregator.py,
           services/review_analyzer.py, routers/sync.py
Depends on: pydantic, schemas/sections.py, schemas/providers.py
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from .providers import IndividualReview
from .sections import CamelModel, ReviewPlatform


class ProviderOutcome(CamelModel):
    provider: str
    success: bool
    error: str | None = None


class SyncResult(CamelModel):
    client_id: int
    success: bool
    status: Literal["nothing_to_sync", "success", "partial"]
    providers: list[ProviderOutcome] = Field(default_factory=list)
    duration: int = 0  # ms


class AggregatedReviews(CamelModel):
    platforms: list[ReviewPlatform] = Field(default_factory=list)
    recent_reviews: list[IndividualReview] = Field(default_factory=list)
    positive_themes: list[str] = Field(default_factory=list)
    negative_themes: list[str] = Field(default_factory=list)
    weekly_vibe: str = ""


# ── Guest Happiness ─────────────────────────────────────────────────────


class Sentiment(CamelModel):
    summary: str
    positive_percent: int = Field(ge=0, le=100)
    negative_percent: int = Field(ge=0, le=100)
    top_praises: list[str] = Field(default_factory=list)
    top_complaints: list[str] = Field(default_factory=list)


class MenuItem(CamelModel):
    name: str
    mentions: int = 0
    sentiment: Literal["positive", "negative", "mixed"] = "mixed"


class MenuMentions(CamelModel):
    items: list[MenuItem] = Field(default_factory=list)


class ResponseTime(CamelModel):
    summary: str
    avg_hours: float | None = None
    replied_count: int = 0
    total_negative: int = 0


class GuestHappiness(CamelModel):
    sentiment: Sentiment
    menu_mentions: MenuMentions = Field(default_factory=MenuMentions)
    response_time: ResponseTime
    analyzed_at: str
    reviews_analyzed: int = 0
