"""
sync_service.py — Sync orchestrator: pull every enabled provider for a client.

Runs each enabled integration one at a time, persists what it can as it goes,
then rebuilds the review and metrics panels from what was collected.

Business Rules:
- sync_status is set to "syncing" before any provider is called
- Providers run sequentially in provider-key order, each under its own deadline
- One provider failing never stops the others; its error is stored on its integration
- ClickUp sections are written immediately (non-empty lists only); ClickUp list
  errors fail the provider after the good lists are saved
- Google Analytics / Search Console / Business / Yelp outputs are buffered and
  turned into reviews, themes, metrics and narrative after the loop
- Review aggregation and metric humanization are best-effort (logged, never fatal)
- Final status is "success" only if every attempted provider succeeded, else "error"
- An unexpected exception still moves the client out of "syncing"
- No enabled integrations → nothing to do, status goes back to what it was

Called by: routers/sync.py, routers/portal.py, scheduler.py
Depends on: connectors/registry.py, services/integration_service.py,
            services/client_service.py, review_aggregator.py, metrics_humanizer.py
"""

import asyncio
import time

from loguru import logger
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..config import settings
from ..connectors.base import ConfigurationError, ProviderClient, ProviderError
from ..connectors.registry import build_registry
from ..models import Client, ClientIntegration
from ..schemas.providers import (
    AnalyticsMetrics,
    BusinessReviewData,
    ClickUpResult,
    IndividualReview,
    SearchConsoleMetrics,
    YelpReviewData,
)
from ..schemas.sections import ReviewPlatform
from ..schemas.sync import GuestHappiness, ProviderOutcome, SyncResult
from . import client_service, integration_service
from .credential_service import KeyConfigurationError
from .metrics_humanizer import build_human_metrics, generate_metrics_narrative
from .review_aggregator import aggregate_reviews
from .review_analyzer import analyze_reviews

CLICKUP_SECTIONS = (
    ("campaigns", "campaigns"),
    ("requests", "requests"),
    ("social_posts", "social_posts"),
)


class ClientNotFoundError(LookupError):
    pass


class _Collected:
    """Provider outputs buffered during the loop for post-processing."""

    def __init__(self):
        self.analytics: AnalyticsMetrics | None = None
        self.search_console: SearchConsoleMetrics | None = None
        self.business: BusinessReviewData | None = None
        self.yelp: YelpReviewData | None = None

    @property
    def has_reviews(self) -> bool:
        return self.business is not None or self.yelp is not None

    @property
    def has_traffic(self) -> bool:
        return self.analytics is not None or self.search_console is not None


# ── Provider steps ──────────────────────────────────────────────────────


def _persist_clickup(db: Session, client: Client, output: ClickUpResult) -> None:
    for attr, section in CLICKUP_SECTIONS:
        records = getattr(output, attr)
        if records:
            client_service.update_client_section(db, client.id, section, [r.dump() for r in records])
    if output.errors:
        raise ProviderError("; ".join(output.errors))


def _handle_output(db: Session, client: Client, provider: str, output, collected: _Collected) -> None:
    if provider == "clickup":
        _persist_clickup(db, client, output)
    elif provider == "google_analytics":
        collected.analytics = output
    elif provider == "google_search_console":
        collected.search_console = output
    elif provider == "google_business":
        collected.business = output
    elif provider == "yelp":
        collected.yelp = output


async def _run_provider(
    db: Session,
    client: Client,
    integration: ClientIntegration,
    provider_client: ProviderClient | None,
    collected: _Collected,
    timeout: float,
) -> ProviderOutcome:
    provider = integration.provider
    started = time.monotonic()
    try:
        if provider_client is None:
            raise ProviderError(f"No client registered for provider {provider}")
        try:
            found = integration_service.get_integration_with_config(db, client.id, provider)
        except KeyConfigurationError as e:
            raise ConfigurationError(str(e)) from e
        if found is None:
            raise ProviderError(f"{provider} integration no longer exists")
        _, config = found
        try:
            output = await asyncio.wait_for(provider_client.sync(config), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(f"{provider} sync timed out after {timeout:g}s") from e
        _handle_output(db, client, provider, output, collected)
    except Exception as e:
        message = str(e) or e.__class__.__name__
        if not isinstance(e, ProviderError):
            logger.opt(exception=e).error("Client {}: {} sync crashed", client.id, provider)
            db.rollback()
        else:
            logger.warning("Client {}: {} sync failed: {}", client.id, provider, message)
        integration_service.update_sync_status(db, client.id, provider, message)
        return ProviderOutcome(provider=provider, success=False, error=message)

    integration_service.update_sync_status(db, client.id, provider, None)
    logger.info(
        "Client {}: {} synced in {:.1f}s", client.id, provider, time.monotonic() - started
    )
    return ProviderOutcome(provider=provider, success=True)


# ── Post-processing ─────────────────────────────────────────────────────


def _apply_reviews(db: Session, client: Client, collected: _Collected) -> None:
    aggregated = aggregate_reviews(
        collected.business, collected.yelp, recent_limit=settings.recent_reviews_limit
    )
    client_service.update_client_section(db, client.id, "reviews", [p.dump() for p in aggregated.platforms])
    client_service.update_client_section(db, client.id, "positive_themes", aggregated.positive_themes)
    client_service.update_client_section(db, client.id, "negative_themes", aggregated.negative_themes)
    client_service.update_client_sync_data(
        db,
        client,
        recent_reviews=[r.dump() for r in aggregated.recent_reviews],
        weekly_vibe=aggregated.weekly_vibe,
    )


def _raw_snapshot(collected: _Collected) -> dict:
    business, yelp = collected.business, collected.yelp
    return {
        "analytics": collected.analytics.dump() if collected.analytics else None,
        "searchConsole": collected.search_console.dump() if collected.search_console else None,
        "business": (
            {"averageRating": business.average_rating, "totalReviews": business.total_reviews}
            if business else None
        ),
        "yelp": {"rating": yelp.rating, "reviewCount": yelp.review_count} if yelp else None,
    }


def _apply_metrics(db: Session, client: Client, collected: _Collected) -> None:
    business, yelp = collected.business, collected.yelp
    ratings = dict(
        google_rating=business.average_rating if business else None,
        google_count=business.total_reviews if business else None,
        yelp_rating=yelp.rating if yelp else None,
        yelp_count=yelp.review_count if yelp else None,
    )
    metrics = build_human_metrics(collected.analytics, collected.search_console, **ratings)
    if metrics:
        client_service.update_client_section(db, client.id, "metrics", [m.dump() for m in metrics])
    client_service.update_client_sync_data(
        db,
        client,
        metrics_narrative=generate_metrics_narrative(collected.analytics, collected.search_console, **ratings),
        raw_metrics=_raw_snapshot(collected),
    )


def _best_effort(db: Session, client: Client, label: str, fn, collected: _Collected) -> None:
    try:
        fn(db, client, collected)
    except Exception as e:
        db.rollback()
        logger.opt(exception=e).error("Client {}: {} failed", client.id, label)


# ── Entry points ────────────────────────────────────────────────────────


async def sync_client(
    db: Session,
    client_id: int,
    *,
    provider: str | None = None,
    registry: dict[str, ProviderClient] | None = None,
) -> SyncResult:
    """Sync every enabled integration of one client (or just `provider`)."""
    client = client_service.get_client_by_id(db, client_id)
    if not client:
        raise ClientNotFoundError(f"Client {client_id} not found")

    started = time.monotonic()
    result = SyncResult(client_id=client_id, success=True, status="success")
    previous_status = client.sync_status if client.sync_status in ("success", "error") else "idle"

    client_service.set_sync_status(db, client, "syncing")
    try:
        integrations = integration_service.get_enabled_integrations(db, client_id)
        if provider:
            integrations = [i for i in integrations if i.provider == provider]

        if not integrations:
            logger.info("Client {}: no enabled integrations, nothing to sync", client_id)
            client_service.set_sync_status(db, client, previous_status)
            result.status = "nothing_to_sync"
            return result

        registry = registry if registry is not None else build_registry(settings)
        collected = _Collected()
        timeout = settings.provider_timeout_seconds

        for integration in integrations:
            outcome = await _run_provider(
                db, client, integration, registry.get(integration.provider), collected, timeout
            )
            result.providers.append(outcome)
            if not outcome.success:
                result.success = False

        if collected.has_reviews:
            _best_effort(db, client, "review aggregation", _apply_reviews, collected)
        if collected.has_traffic:
            _best_effort(db, client, "metrics humanization", _apply_metrics, collected)

        if result.success:
            client_service.mark_client_synced(db, client)
        else:
            result.status = "partial"
            client_service.mark_client_sync_error(db, client)
    except Exception as e:
        logger.opt(exception=e).error("Client {}: sync aborted", client_id)
        db.rollback()
        client_service.mark_client_sync_error(db, client)
        result.success = False
        result.status = "partial"
    finally:
        result.duration = int((time.monotonic() - started) * 1000)

    failed = [p.provider for p in result.providers if not p.success]
    logger.info(
        "Client {}: sync {} in {}ms ({} provider(s){})",
        client_id,
        result.status,
        result.duration,
        len(result.providers),
        f", failed: {', '.join(failed)}" if failed else "",
    )
    return result


async def sync_all_clients(db: Session, registry_factory=None) -> list[SyncResult]:
    """Sync every client with at least one enabled integration, one after another."""
    results = []
    client_ids = integration_service.get_clients_with_integrations(db)
    logger.info("Scheduled sync: {} client(s) with integrations", len(client_ids))
    for client_id in client_ids:
        registry = registry_factory() if registry_factory else None
        try:
            results.append(await sync_client(db, client_id, registry=registry))
        except ClientNotFoundError:
            logger.warning("Scheduled sync: client {} disappeared mid-run", client_id)
    return results


# ── Guest Happiness ─────────────────────────────────────────────────────


def _load_models(model, records) -> list:
    parsed = []
    for record in records or []:
        try:
            parsed.append(model.model_validate(record))
        except ValidationError:
            logger.warning("Skipping malformed {} record", model.__name__)
    return parsed


async def analyze_guest_happiness(db: Session, client_id: int) -> GuestHappiness:
    """Analyze the client's stored reviews and save the Guest Happiness panel."""
    client = client_service.get_client_by_id(db, client_id)
    if not client:
        raise ClientNotFoundError(f"Client {client_id} not found")

    reviews = _load_models(IndividualReview, client.recent_reviews)
    platforms = _load_models(ReviewPlatform, client.reviews)
    happiness = await analyze_reviews(reviews, platforms)
    client_service.update_client_sync_data(db, client, guest_happiness=happiness.dump())
    logger.info("Client {}: guest happiness analyzed ({} reviews)", client_id, len(reviews))
    return happiness
