"""
metrics_humanizer.py — Raw analytics numbers → friendly portal metric cards.

    Raw:   sessions=5677, avg duration=72s, top page=/menu
    Human: "5,677 people visited your site" / "Mostly checking out menu for about a minute"

Business Rules:
- Pure functions; whatever inputs are missing simply yield fewer metrics
- Status from a ratio against target: >= 1.0 on-track, >= 0.7 needs-work, else critical
- Sessions > 100 and users > 50 are on-track; bounce is judged as (1 - bounce) vs 0.6
- Impressions > 500 and clicks > 50 are on-track
- Ratings are judged against 4.5 stars

Called by: services/sync_service.py
Depends on: schemas/providers.py, schemas/sections.py
"""

from ..schemas.providers import AnalyticsMetrics, SearchConsoleMetrics
from ..schemas.sections import Metric
from ..utils import round_half_up

EMPTY_NARRATIVE = "No live metrics data available yet — connect your integrations to see the magic!"
RATING_TARGET = 4.5


def fmt(n) -> str:
    return f"{n:,}"


def fmt_pct(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


def fmt_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{round_half_up(seconds)} seconds"
    minutes = seconds / 60
    if minutes < 2:
        return "about a minute"
    return f"about {minutes:.1f} minutes"


def trend_status(current: float, target: float) -> str:
    ratio = current / target
    if ratio >= 1:
        return "on-track"
    if ratio >= 0.7:
        return "needs-work"
    return "critical"


def _top_page(ga: AnalyticsMetrics, default: str) -> str:
    if not ga.top_pages:
        return default
    return ga.top_pages[0].page.removeprefix("/") or default


# ── Per-source metric cards ─────────────────────────────────────────────


def humanize_analytics(ga: AnalyticsMetrics) -> list[Metric]:
    if ga.bounce_rate < 0.4:
        bounce_note = "People are sticking around — great sign!"
    elif ga.bounce_rate < 0.6:
        bounce_note = "Some visitors are leaving quickly — let's work on that"
    else:
        bounce_note = "Many visitors are bouncing — landing pages may need attention"

    return [
        Metric(
            label=f"{fmt(ga.sessions)} people visited your site",
            value=f"Mostly checking out {_top_page(ga, 'the homepage')} for {fmt_duration(ga.avg_session_duration)}",
            target="Growing week over week",
            status="on-track" if ga.sessions > 100 else "needs-work",
        ),
        Metric(
            label="Unique Visitors",
            value=f"{fmt(ga.users)} people found you this week",
            target="More is always better",
            status="on-track" if ga.users > 50 else "needs-work",
        ),
        Metric(
            label="Bounce Rate",
            value=f"{fmt_pct(ga.bounce_rate)} — {bounce_note}",
            target="Under 40%",
            status=trend_status(1 - ga.bounce_rate, 0.6),
        ),
    ]


def humanize_search_console(gsc: SearchConsoleMetrics) -> list[Metric]:
    if gsc.total_clicks > 100:
        click_note = "Strong click-through from search!"
    elif gsc.total_clicks > 30:
        click_note = "Decent traffic from Google"
    else:
        click_note = "Let's boost those search clicks"

    metrics = [
        Metric(
            label="Google Search Visibility",
            value=f"Your site appeared {fmt(gsc.total_impressions)} times in Google searches",
            target="More impressions = more visibility",
            status="on-track" if gsc.total_impressions > 500 else "needs-work",
        ),
        Metric(
            label="Search Clicks",
            value=f"{fmt(gsc.total_clicks)} people clicked through from Google — {click_note}",
            target="Growing month over month",
            status="on-track" if gsc.total_clicks > 50 else "needs-work",
        ),
    ]
    if gsc.top_queries:
        top = gsc.top_queries[0]
        metrics.append(Metric(
            label="Top Search Term",
            value=f'"{top.query}" drove {fmt(top.clicks)} clicks from {fmt(top.impressions)} appearances',
            target="Brand name in top 3",
            status="on-track",
        ))
    return metrics


def humanize_reviews(
    google_rating: float, google_count: int, yelp_rating: float, yelp_count: int
) -> list[Metric]:
    metrics = []
    if google_count > 0:
        stars = "⭐" * round_half_up(google_rating)
        metrics.append(Metric(
            label="Google Reviews",
            value=f"{google_rating:.1f} stars from {fmt(google_count)} happy customers {stars}",
            target="4.5+ stars",
            status=trend_status(google_rating, RATING_TARGET),
        ))
    if yelp_count > 0:
        metrics.append(Metric(
            label="Yelp Reviews",
            value=f"{yelp_rating:.1f} stars from {fmt(yelp_count)} Yelp reviewers",
            target="4.5+ stars",
            status=trend_status(yelp_rating, RATING_TARGET),
        ))
    return metrics


# ── Combined ────────────────────────────────────────────────────────────


def build_human_metrics(
    ga: AnalyticsMetrics | None = None,
    gsc: SearchConsoleMetrics | None = None,
    google_rating: float | None = None,
    google_count: int | None = None,
    yelp_rating: float | None = None,
    yelp_count: int | None = None,
) -> list[Metric]:
    metrics = []
    if ga:
        metrics.extend(humanize_analytics(ga))
    if gsc:
        metrics.extend(humanize_search_console(gsc))
    if google_rating or yelp_rating:
        metrics.extend(humanize_reviews(
            google_rating or 0, google_count or 0, yelp_rating or 0, yelp_count or 0
        ))
    return metrics


def generate_metrics_narrative(
    ga: AnalyticsMetrics | None = None,
    gsc: SearchConsoleMetrics | None = None,
    google_rating: float | None = None,
    google_count: int | None = None,
    yelp_rating: float | None = None,
    yelp_count: int | None = None,
) -> str:
    parts = []
    if ga:
        parts.append(
            f"This week, {fmt(ga.sessions)} people visited your site, mostly checking out "
            f"{_top_page(ga, 'the homepage')} for {fmt_duration(ga.avg_session_duration)}."
        )
    if gsc and gsc.total_impressions > 0:
        parts.append(
            f"Your site appeared {fmt(gsc.total_impressions)} times in Google "
            f"and {fmt(gsc.total_clicks)} people clicked through."
        )
    if google_rating and google_count:
        parts.append(f"You're sitting at {google_rating:.1f} stars on Google with {fmt(google_count)} reviews.")
    if yelp_rating and yelp_count:
        parts.append(f"On Yelp, you've got {yelp_rating:.1f} stars from {fmt(yelp_count)} reviews.")
    return " ".join(parts) or EMPTY_NARRATIVE
