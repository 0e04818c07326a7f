"""
schemas/providers.py — Normalized outputs of the provider clients

Every provider client returns one of these shapes regardless of how the
upstream API names things. `dump()` gives the camelCase snapshot stored in
the client's raw_metrics.

Called by: connectors/*, services/review_aggregator.py, services/metrics_humanizer.py
Depends on: pydantic, schemas/sections.py
"""

from __future__ import annotations

from pydantic import Field

from .sections import Campaign, CamelModel, ClientRequest, SocialPost


class IndividualReview(CamelModel):
    platform: str
    external_id: str | None = None
    author_name: str = "Anonymous"
    rating: int = Field(ge=1, le=5)
    text: str = ""
    reply_text: str | None = None
    review_date: str = ""


# ── ClickUp ─────────────────────────────────────────────────────────────


class ClickUpResult(CamelModel):
    campaigns: list[Campaign] = Field(default_factory=list)
    requests: list[ClientRequest] = Field(default_factory=list)
    social_posts: list[SocialPost] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


# ── Google Analytics (GA4) ──────────────────────────────────────────────


class TopPage(CamelModel):
    page: str
    views: int = 0


class AnalyticsMetrics(CamelModel):
    sessions: int = 0
    users: int = 0
    avg_session_duration: float = 0
    top_pages: list[TopPage] = Field(default_factory=list)
    bounce_rate: float = 0
    period: str = "Last 7 days"


# ── Google Search Console ───────────────────────────────────────────────


class TopQuery(CamelModel):
    query: str
    clicks: int = 0
    impressions: int = 0


class SearchConsoleMetrics(CamelModel):
    total_clicks: int = 0
    total_impressions: int = 0
    avg_ctr: float = 0
    avg_position: float = 0
    top_queries: list[TopQuery] = Field(default_factory=list)
    period: str = ""


# ── Reviews ─────────────────────────────────────────────────────────────


class BusinessReviewData(CamelModel):
    average_rating: float = 0
    total_reviews: int = 0
    reviews: list[IndividualReview] = Field(default_factory=list)


class YelpReviewData(CamelModel):
    rating: float = 0
    review_count: int = 0
    reviews: list[IndividualReview] = Field(default_factory=list)
    business_url: str = ""
