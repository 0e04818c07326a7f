"""
test_metrics_humanizer.py — Tests for raw analytics → portal metric cards

Called by: pytest
Depends on: app/services/metrics_humanizer.py
"""

import pytest

from app.schemas.providers import AnalyticsMetrics, SearchConsoleMetrics, TopPage, TopQuery
from app.services.metrics_humanizer import (
    EMPTY_NARRATIVE,
    build_human_metrics,
    fmt_duration,
    fmt_pct,
    generate_metrics_narrative,
    humanize_analytics,
    humanize_reviews,
    humanize_search_console,
    trend_status,
)


@pytest.fixture()
def ga():
    return AnalyticsMetrics(
        sessions=5677,
        users=4100,
        avg_session_duration=72,
        bounce_rate=0.35,
        top_pages=[TopPage(page="/menu", views=812)],
    )


@pytest.fixture()
def gsc():
    return SearchConsoleMetrics(
        total_clicks=120,
        total_impressions=2400,
        avg_ctr=0.05,
        avg_position=7.2,
        top_queries=[TopQuery(query="juice lab austin", clicks=48, impressions=310)],
    )


# ── Formatting ───────────────────────────────────────────────────────


@pytest.mark.parametrize("seconds,expected", [
    (45, "45 seconds"),
    (12.5, "13 seconds"),
    (72, "about a minute"),
    (150, "about 2.5 minutes"),
])
def test_fmt_duration(seconds, expected):
    assert fmt_duration(seconds) == expected


def test_fmt_pct():
    assert fmt_pct(0.3512) == "35.1%"


@pytest.mark.parametrize("current,target,expected", [
    (4.5, 4.5, "on-track"),
    (4.0, 4.5, "needs-work"),
    (3.0, 4.5, "critical"),
])
def test_trend_status(current, target, expected):
    assert trend_status(current, target) == expected


# ── Analytics ────────────────────────────────────────────────────────


def test_humanize_analytics(ga):
    visits, visitors, bounce = humanize_analytics(ga)

    assert visits.label == "5,677 people visited your site"
    assert visits.value == "Mostly checking out menu for about a minute"
    assert visits.status == "on-track"
    assert visitors.value == "4,100 people found you this week"
    assert bounce.value == "35.0% — People are sticking around — great sign!"
    assert bounce.status == "on-track"


def test_humanize_analytics_low_traffic(ga):
    ga.sessions, ga.users, ga.bounce_rate = 80, 40, 0.7
    visits, visitors, bounce = humanize_analytics(ga)
    assert visits.status == "needs-work"
    assert visitors.status == "needs-work"
    assert bounce.status == "critical"
    assert "Many visitors are bouncing" in bounce.value


def test_root_top_page_reads_as_homepage(ga):
    ga.top_pages = [TopPage(page="/", views=10)]
    assert "the homepage" in humanize_analytics(ga)[0].value
    ga.top_pages = []
    assert "the homepage" in humanize_analytics(ga)[0].value


# ── Search Console ───────────────────────────────────────────────────


def test_humanize_search_console(gsc):
    visibility, clicks, top = humanize_search_console(gsc)
    assert visibility.value == "Your site appeared 2,400 times in Google searches"
    assert visibility.status == "on-track"
    assert clicks.value.endswith("Strong click-through from search!")
    assert top.value == '"juice lab austin" drove 48 clicks from 310 appearances'


def test_search_console_without_queries_has_two_cards():
    assert len(humanize_search_console(SearchConsoleMetrics(total_clicks=10))) == 2


# ── Reviews ──────────────────────────────────────────────────────────


def test_humanize_reviews():
    metrics = humanize_reviews(4.6, 212, 3.9, 87)
    google, yelp = metrics
    assert google.value == "4.6 stars from 212 happy customers ⭐⭐⭐⭐⭐"
    assert google.status == "on-track"
    assert yelp.value == "3.9 stars from 87 Yelp reviewers"
    assert yelp.status == "needs-work"


def test_humanize_reviews_skips_platforms_without_reviews():
    assert humanize_reviews(4.6, 0, 0, 0) == []


# ── Combined ─────────────────────────────────────────────────────────


def test_build_human_metrics_empty():
    assert build_human_metrics() == []


def test_build_human_metrics_all_sources(ga, gsc):
    metrics = build_human_metrics(ga, gsc, google_rating=4.6, google_count=212)
    assert len(metrics) == 3 + 3 + 1


def test_narrative_empty():
    assert generate_metrics_narrative() == EMPTY_NARRATIVE


def test_narrative_parts(ga, gsc):
    text = generate_metrics_narrative(ga, gsc, google_rating=4.6, google_count=212, yelp_rating=4.5, yelp_count=87)
    assert text == (
        "This week, 5,677 people visited your site, mostly checking out menu for about a minute. "
        "Your site appeared 2,400 times in Google and 120 people clicked through. "
        "You're sitting at 4.6 stars on Google with 212 reviews. "
        "On Yelp, you've got 4.5 stars from 87 reviews."
    )


def test_narrative_skips_search_console_without_impressions():
    assert generate_metrics_narrative(gsc=SearchConsoleMetrics()) == EMPTY_NARRATIVE
