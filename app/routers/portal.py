"""
routers/portal.py — Token-gated client portal payload and freshness refresh

The portal token in the URL is the only credential. Unknown tokens get 404.

Business Rules:
- Viewing the portal records last_accessed_at
- Refresh runs a full sync only when the last successful sync is older than
  PORTAL_STALE_MINUTES (default 15)

Called by: main.py (router mount)
Depends on: services/client_service.py, services/sync_service.py
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..services import client_service, integration_service, sync_service

router = APIRouter(prefix="/api/portal", tags=["portal"])


def _client_or_404(db: Session, token: str):
    client = client_service.get_client_by_token(db, token)
    if not client:
        raise HTTPException(404, "Invalid token")
    return client


@router.get("/{token}")
def get_portal(token: str, db: Session = Depends(get_db)):
    client = _client_or_404(db, token)
    client_service.update_last_accessed(db, client)
    return client_service.client_to_portal(client)


@router.post("/{token}/refresh")
async def refresh_portal(token: str, db: Session = Depends(get_db)):
    client = _client_or_404(db, token)

    if not integration_service.get_enabled_integrations(db, client.id):
        return {"success": True, "message": "No integrations to sync"}
    if not client_service.is_sync_stale(client, settings.portal_stale_minutes):
        return {"success": True, "message": "Data is fresh, no sync needed"}

    result = await sync_service.sync_client(db, client.id)
    return {
        "success": result.success,
        "synced": len(result.providers),
        "duration": result.duration,
    }
