"""
test_sync_service.py — Tests for the sync orchestrator

Provider clients are replaced with FakeProvider doubles passed in through
the `registry` argument; configs are real encrypted rows.

Called by: pytest
Depends on: app/services/sync_service.py, tests/conftest.py
"""

from unittest.mock import patch

import pytest

from app.connectors.base import ConfigurationError, ExternalAPIError
from app.models import ClientIntegration
from app.schemas.providers import (
    AnalyticsMetrics,
    BusinessReviewData,
    ClickUpResult,
    IndividualReview,
    TopPage,
    YelpReviewData,
)
from app.schemas.sections import Campaign
from app.services import sync_service

GA_OUTPUT = AnalyticsMetrics(
    sessions=5677,
    users=4100,
    avg_session_duration=72,
    bounce_rate=0.35,
    top_pages=[TopPage(page="/menu", views=812)],
)


def _integration(db, client_id, provider) -> ClientIntegration:
    return db.query(ClientIntegration).filter_by(client_id=client_id, provider=provider).one()


# ── Partial failure ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_one_failing_provider_does_not_stop_others(
    db_session, test_client_record, add_integration, fake_provider
):
    record = test_client_record
    add_integration(record, "clickup", {"api_token": "pk_bad"})
    add_integration(record, "google_analytics", {"property_id": "properties/1"})
    ga = fake_provider("google_analytics", output=GA_OUTPUT)
    registry = {
        "clickup": fake_provider("clickup", error=ExternalAPIError("ClickUp API", 401, "bad token")),
        "google_analytics": ga,
    }

    result = await sync_service.sync_client(db_session, record.id, registry=registry)

    assert result.success is False
    assert result.status == "partial"
    assert [(p.provider, p.success) for p in result.providers] == [
        ("clickup", False),
        ("google_analytics", True),
    ]
    assert result.providers[0].error == "ClickUp API 401: bad token"
    assert ga.calls == [{"property_id": "properties/1"}]

    db_session.refresh(record)
    assert record.sync_status == "error"
    assert record.last_sync_at is None
    assert len(record.metrics) == 3
    assert record.metrics[0]["label"] == "5,677 people visited your site"
    assert record.metrics_narrative.startswith("This week, 5,677 people visited your site")
    assert record.raw_metrics["analytics"]["sessions"] == 5677
    assert record.raw_metrics["yelp"] is None

    clickup = _integration(db_session, record.id, "clickup")
    assert clickup.sync_error == "ClickUp API 401: bad token"
    assert clickup.last_synced_at is None
    analytics = _integration(db_session, record.id, "google_analytics")
    assert analytics.sync_error is None
    assert analytics.last_synced_at is not None


@pytest.mark.asyncio
async def test_all_providers_succeed(db_session, test_client_record, add_integration, fake_provider):
    record = test_client_record
    add_integration(record, "google_analytics", {"property_id": "p"})
    integration = _integration(db_session, record.id, "google_analytics")
    integration.sync_error = "old failure"
    db_session.commit()

    result = await sync_service.sync_client(
        db_session, record.id, registry={"google_analytics": fake_provider("google_analytics", output=GA_OUTPUT)}
    )

    assert result.success is True
    assert result.status == "success"
    assert result.duration >= 0
    db_session.refresh(record)
    assert record.sync_status == "success"
    assert record.last_sync_at is not None
    assert _integration(db_session, record.id, "google_analytics").sync_error is None


@pytest.mark.asyncio
async def test_providers_run_in_key_order(db_session, test_client_record, add_integration, fake_provider):
    record = test_client_record
    for provider in ("yelp", "clickup", "google_search_console", "google_analytics"):
        add_integration(record, provider, {"x": "1"})
    registry = {
        p: fake_provider(p, error=ConfigurationError("not set up"))
        for p in ("yelp", "clickup", "google_search_console", "google_analytics")
    }

    result = await sync_service.sync_client(db_session, record.id, registry=registry)

    assert [p.provider for p in result.providers] == [
        "clickup", "google_analytics", "google_search_console", "yelp",
    ]
    assert all(p.error == "not set up" for p in result.providers)


# ── ClickUp persistence ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_clickup_partial_lists_saved_then_failed(
    db_session, test_client_record, add_integration, fake_provider
):
    record = test_client_record
    record.requests = [{"title": "keep me", "type": "Design", "priority": "normal", "deadline": "Mar 1", "url": ""}]
    db_session.commit()
    add_integration(record, "clickup", {"api_token": "pk"})
    output = ClickUpResult(
        campaigns=[Campaign(title="Spring Drop", emoji="🌸", window="TBD", status="active", goal="Spring Drop", progress=40)],
        errors=["Requests sync failed: ClickUp API 500: boom"],
    )

    result = await sync_service.sync_client(
        db_session, record.id, registry={"clickup": fake_provider("clickup", output=output)}
    )

    assert result.success is False
    db_session.refresh(record)
    assert record.campaigns[0]["title"] == "Spring Drop"
    assert record.campaigns[0]["progress"] == 40
    assert record.requests[0]["title"] == "keep me"
    assert _integration(db_session, record.id, "clickup").sync_error == (
        "Requests sync failed: ClickUp API 500: boom"
    )


# ── Reviews ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reviews_aggregated_after_loop(db_session, test_client_record, add_integration, fake_provider):
    record = test_client_record
    add_integration(record, "google_business", {"location_id": "loc"})
    add_integration(record, "yelp", {"business_id": "biz"})
    business = BusinessReviewData(average_rating=4.0, total_reviews=3, reviews=[
        IndividualReview(platform="Google", rating=5, text="Fresh and friendly", review_date="2026-03-05T00:00:00Z"),
        IndividualReview(platform="Google", rating=5, text="fresh juice", review_date="2026-03-03T00:00:00Z"),
        IndividualReview(platform="Google", rating=2, text="slow", review_date="2026-03-01T00:00:00Z",
                         reply_text="Sorry"),
    ])
    yelp = YelpReviewData(rating=4.5, review_count=10, reviews=[
        IndividualReview(platform="Yelp", rating=4, text="great", review_date="2026-03-04 08:00:00"),
    ])
    registry = {
        "google_business": fake_provider("google_business", output=business),
        "yelp": fake_provider("yelp", output=yelp),
    }

    result = await sync_service.sync_client(db_session, record.id, registry=registry)

    assert result.success is True
    db_session.refresh(record)
    assert [r["platform"] for r in record.reviews] == ["Google", "Yelp"]
    assert record.reviews[0]["responseRate"] == "33%"
    assert [r["reviewDate"] for r in record.recent_reviews][:2] == ["2026-03-05T00:00:00Z", "2026-03-04 08:00:00"]
    assert record.positive_themes[0] == "Fresh (2 mentions)"
    assert record.weekly_vibe.startswith("3 out of 4 reviews this week were positive")
    assert record.metrics_narrative is None


@pytest.mark.asyncio
async def test_aggregation_failure_is_best_effort(db_session, test_client_record, add_integration, fake_provider):
    record = test_client_record
    add_integration(record, "yelp", {"business_id": "biz"})
    registry = {"yelp": fake_provider("yelp", output=YelpReviewData(rating=4, review_count=2))}

    with patch("app.services.sync_service.aggregate_reviews", side_effect=ZeroDivisionError("bug")):
        result = await sync_service.sync_client(db_session, record.id, registry=registry)

    assert result.success is True
    db_session.refresh(record)
    assert record.sync_status == "success"


# ── Edge cases ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_nothing_to_sync(db_session, test_client_record, add_integration):
    record = test_client_record
    add_integration(record, "yelp", {"business_id": "biz"}, enabled=False)

    result = await sync_service.sync_client(db_session, record.id, registry={})

    assert result.status == "nothing_to_sync"
    assert result.success is True
    assert result.providers == []
    db_session.refresh(record)
    assert record.sync_status == "idle"


@pytest.mark.asyncio
async def test_nothing_to_sync_keeps_previous_status(db_session, test_client_record):
    record = test_client_record
    record.sync_status = "success"
    db_session.commit()

    await sync_service.sync_client(db_session, record.id, registry={})

    db_session.refresh(record)
    assert record.sync_status == "success"


@pytest.mark.asyncio
async def test_single_provider_sync(db_session, test_client_record, add_integration, fake_provider):
    record = test_client_record
    add_integration(record, "google_analytics", {"property_id": "p"})
    add_integration(record, "yelp", {"business_id": "biz"})
    yelp = fake_provider("yelp", output=YelpReviewData())
    registry = {"google_analytics": fake_provider("google_analytics", output=GA_OUTPUT), "yelp": yelp}

    result = await sync_service.sync_client(db_session, record.id, provider="google_analytics", registry=registry)

    assert [p.provider for p in result.providers] == ["google_analytics"]
    assert yelp.calls == []


@pytest.mark.asyncio
async def test_provider_timeout(db_session, test_client_record, add_integration, fake_provider, monkeypatch):
    record = test_client_record
    add_integration(record, "google_analytics", {"property_id": "p"})
    monkeypatch.setattr(sync_service.settings, "provider_timeout_seconds", 0.05)
    registry = {"google_analytics": fake_provider("google_analytics", output=GA_OUTPUT, delay=1)}

    result = await sync_service.sync_client(db_session, record.id, registry=registry)

    assert result.providers[0].error == "google_analytics sync timed out after 0.05s"
    db_session.refresh(record)
    assert record.sync_status == "error"


@pytest.mark.asyncio
async def test_crashing_provider_is_isolated(db_session, test_client_record, add_integration, fake_provider):
    record = test_client_record
    add_integration(record, "clickup", {"api_token": "pk"})
    add_integration(record, "google_analytics", {"property_id": "p"})
    registry = {
        "clickup": fake_provider("clickup", error=KeyError("campaigns")),
        "google_analytics": fake_provider("google_analytics", output=GA_OUTPUT),
    }

    result = await sync_service.sync_client(db_session, record.id, registry=registry)

    assert [p.success for p in result.providers] == [False, True]
    assert result.providers[0].error == "'campaigns'"


@pytest.mark.asyncio
async def test_unexpected_error_marks_client_error(db_session, test_client_record, add_integration):
    record = test_client_record
    add_integration(record, "yelp", {"business_id": "biz"})

    with patch.object(
        sync_service.integration_service, "get_enabled_integrations", side_effect=RuntimeError("db down")
    ):
        result = await sync_service.sync_client(db_session, record.id, registry={})

    assert result.success is False
    assert result.status == "partial"
    db_session.refresh(record)
    assert record.sync_status == "error"


@pytest.mark.asyncio
async def test_missing_encryption_key_is_recorded_per_provider(
    db_session, test_client_record, add_integration, fake_provider, monkeypatch
):
    record = test_client_record
    add_integration(record, "clickup", {"api_token": "pk"})
    monkeypatch.setattr(sync_service.settings, "integration_encryption_key", "")
    clickup = fake_provider("clickup", output=ClickUpResult())

    result = await sync_service.sync_client(db_session, record.id, registry={"clickup": clickup})

    assert clickup.calls == []
    assert result.providers[0].success is False
    assert "INTEGRATION_ENCRYPTION_KEY" in result.providers[0].error
    assert "INTEGRATION_ENCRYPTION_KEY" in _integration(db_session, record.id, "clickup").sync_error


@pytest.mark.asyncio
async def test_undecryptable_config_reaches_provider_as_empty(
    db_session, test_client_record, add_integration, fake_provider
):
    record = test_client_record
    row = add_integration(record, "clickup", {"api_token": "pk"})
    row.config = "bm90IGEgcmVhbCB0b2tlbiBhdCBhbGwgYnV0IGxvbmcgZW5vdWdo"
    db_session.commit()
    clickup = fake_provider("clickup", error=ConfigurationError("No ClickUp API token configured"))

    result = await sync_service.sync_client(db_session, record.id, registry={"clickup": clickup})

    assert clickup.calls == [{}]
    assert result.providers[0].error == "No ClickUp API token configured"


@pytest.mark.asyncio
async def test_unknown_client_raises(db_session):
    with pytest.raises(sync_service.ClientNotFoundError):
        await sync_service.sync_client(db_session, 9999, registry={})


@pytest.mark.asyncio
async def test_missing_registry_entry_is_provider_failure(db_session, test_client_record, add_integration):
    add_integration(test_client_record, "yelp", {"business_id": "biz"})
    result = await sync_service.sync_client(db_session, test_client_record.id, registry={})
    assert result.providers[0].error == "No client registered for provider yelp"


# ── All clients ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_sync_all_clients_only_with_enabled_integrations(db_session, add_integration, fake_provider):
    from app.services import client_service

    a = client_service.create_client(db_session, "Alpha Cafe", "alpha")
    b = client_service.create_client(db_session, "Beta Bistro", "beta")
    client_service.create_client(db_session, "Gamma Grill", "gamma")
    add_integration(a, "google_analytics", {"property_id": "p"})
    add_integration(b, "yelp", {"business_id": "x"}, enabled=False)

    def factory():
        return {"google_analytics": fake_provider("google_analytics", output=GA_OUTPUT)}

    results = await sync_service.sync_all_clients(db_session, registry_factory=factory)

    assert [r.client_id for r in results] == [a.id]
    assert results[0].success is True


# ── Guest happiness ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_analyze_guest_happiness_persists_panel(db_session, test_client_record):
    record = test_client_record
    record.reviews = [{"platform": "Google", "rating": "4.6/5", "reviewCount": 212, "responseRate": "40%"}]
    record.recent_reviews = [
        {"platform": "Google", "rating": 2, "text": "ok", "replyText": None, "reviewDate": ""},
        {"platform": "Google", "rating": 9},
    ]
    db_session.commit()

    with patch("app.services.review_analyzer.claude_structured") as ai:
        happiness = await sync_service.analyze_guest_happiness(db_session, record.id)
    ai.assert_not_called()

    assert happiness.reviews_analyzed == 1
    assert happiness.response_time.total_negative == 1
    db_session.refresh(record)
    assert record.guest_happiness["sentiment"]["positivePercent"] == 92
