"""
client_service.py — Client records, portal tokens, section writes, sync state.

Business Rules:
- Portal tokens are 24 random bytes, base64url (32 chars), unique per client
- Sections are replaced whole; payloads are validated before anything is written
- Admin updates touch scalar fields only
- sync_status moves idle → syncing → success | error; last_sync_at is set on success only
- Portal payload uses camelCase keys and defaults the brand theme

Called by: routers/clients.py, routers/portal.py, services/sync_service.py
Depends on: models (Client), schemas/sections.py
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from ..models import Client
from ..models.client import DEFAULT_BRAND_THEME, SECTION_NAMES
from ..schemas.sections import validate_section

log = logging.getLogger(__name__)

_SCALAR_FIELDS = (
    "name",
    "location",
    "tagline",
    "logo_url",
    "brand_color",
    "brand_theme",
    "overall_health",
    "health_summary",
    "top_issue",
    "action_needed",
    "next_huddle",
)


def _utc(dt):
    """Make a naive datetime UTC-aware (no-op if already aware)."""
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _touch(client: Client) -> None:
    client.updated_at = datetime.now(timezone.utc)


def generate_portal_token() -> str:
    return secrets.token_urlsafe(24)


# ── Queries ─────────────────────────────────────────────────────────────


def list_clients(db: Session) -> list[Client]:
    return db.query(Client).order_by(Client.name).all()


def get_client_by_id(db: Session, client_id: int) -> Client | None:
    return db.get(Client, client_id)


def get_client_by_token(db: Session, token: str) -> Client | None:
    if not token:
        return None
    return db.query(Client).filter_by(portal_token=token).first()


# ── Admin writes ────────────────────────────────────────────────────────


def create_client(db: Session, name: str, slug: str, **fields) -> Client:
    client = Client(name=name, slug=slug, portal_token=generate_portal_token())
    for key in _SCALAR_FIELDS:
        if fields.get(key) is not None:
            setattr(client, key, fields[key])
    db.add(client)
    db.commit()
    db.refresh(client)
    log.info(f"Client created: {slug} (id={client.id})")
    return client


def update_client(db: Session, client_id: int, **fields) -> Client | None:
    client = get_client_by_id(db, client_id)
    if not client:
        return None
    for key, value in fields.items():
        if key in _SCALAR_FIELDS and value is not None:
            setattr(client, key, value)
    _touch(client)
    db.commit()
    db.refresh(client)
    return client


def delete_client(db: Session, client_id: int) -> bool:
    client = get_client_by_id(db, client_id)
    if not client:
        return False
    db.delete(client)
    db.commit()
    log.info(f"Client deleted: {client_id}")
    return True


def regenerate_token(db: Session, client_id: int) -> str | None:
    client = get_client_by_id(db, client_id)
    if not client:
        return None
    client.portal_token = generate_portal_token()
    _touch(client)
    db.commit()
    return client.portal_token


def update_last_accessed(db: Session, client: Client) -> None:
    client.last_accessed_at = datetime.now(timezone.utc)
    db.commit()


def update_client_section(db: Session, client_id: int, section: str, data) -> Client | None:
    """Validate and replace a whole section. Raises SectionValidationError before writing."""
    stored = validate_section(section, data)
    client = get_client_by_id(db, client_id)
    if not client:
        return None
    setattr(client, section, stored)
    _touch(client)
    db.commit()
    return client


# ── Sync state ──────────────────────────────────────────────────────────


def set_sync_status(db: Session, client: Client, status: str) -> None:
    client.sync_status = status
    _touch(client)
    db.commit()


def update_client_sync_data(
    db: Session,
    client: Client,
    *,
    raw_metrics: dict | None = None,
    metrics_narrative: str | None = None,
    weekly_vibe: str | None = None,
    recent_reviews: list | None = None,
    guest_happiness: dict | None = None,
) -> None:
    updates = {
        "raw_metrics": raw_metrics,
        "metrics_narrative": metrics_narrative,
        "weekly_vibe": weekly_vibe,
        "recent_reviews": recent_reviews,
        "guest_happiness": guest_happiness,
    }
    for key, value in updates.items():
        if value is not None:
            setattr(client, key, value)
    _touch(client)
    db.commit()


def mark_client_synced(db: Session, client: Client) -> None:
    now = datetime.now(timezone.utc)
    client.last_sync_at = now
    client.sync_status = "success"
    client.updated_at = now
    db.commit()


def mark_client_sync_error(db: Session, client: Client) -> None:
    client.sync_status = "error"
    _touch(client)
    db.commit()


def is_sync_stale(client: Client, minutes: int) -> bool:
    last = _utc(client.last_sync_at)
    if last is None:
        return True
    return datetime.now(timezone.utc) - last > timedelta(minutes=minutes)


# ── Serialization ───────────────────────────────────────────────────────


def _iso(dt) -> str | None:
    dt = _utc(dt)
    return dt.isoformat() if dt else None


def client_to_admin(client: Client) -> dict:
    data = {
        "id": client.id,
        "name": client.name,
        "slug": client.slug,
        "portal_token": client.portal_token,
        "sync_status": client.sync_status,
        "last_sync_at": _iso(client.last_sync_at),
        "last_accessed_at": _iso(client.last_accessed_at),
        "created_at": _iso(client.created_at),
    }
    for key in _SCALAR_FIELDS:
        data[key] = getattr(client, key)
    for section in SECTION_NAMES:
        data[section] = getattr(client, section) or []
    data["guest_happiness"] = client.guest_happiness
    return data


def client_to_portal(client: Client) -> dict:
    """camelCase payload consumed by the portal front end."""
    return {
        "id": client.id,
        "slug": client.slug,
        "name": client.name,
        "location": client.location or "",
        "tagline": client.tagline,
        "logoUrl": client.logo_url,
        "brandColor": client.brand_color,
        "brandTheme": {**DEFAULT_BRAND_THEME, **(client.brand_theme or {})},
        "overallHealth": client.overall_health,
        "healthSummary": client.health_summary or "",
        "topIssue": client.top_issue or "",
        "actionNeeded": client.action_needed or "",
        "metrics": client.metrics or [],
        "requests": client.requests or [],
        "campaigns": client.campaigns or [],
        "assets": client.assets or [],
        "huddles": client.huddles or [],
        "socialPosts": client.social_posts or [],
        "reviews": client.reviews or [],
        "positiveThemes": client.positive_themes or [],
        "negativeThemes": client.negative_themes or [],
        "quickLinks": client.quick_links or [],
        "nextHuddle": client.next_huddle or "",
        "portalToken": client.portal_token,
        "metricsNarrative": client.metrics_narrative,
        "weeklyVibe": client.weekly_vibe,
        "recentReviews": client.recent_reviews or [],
        "guestHappiness": client.guest_happiness,
        "lastSyncAt": _iso(client.last_sync_at),
        "syncStatus": client.sync_status,
    }
