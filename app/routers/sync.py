"""
routers/sync.py — Manual sync, guest-happiness analysis, and the cron trigger

Business Rules:
- Admin "sync now" can run every provider or a single one
- Guest-happiness analysis works from already-synced reviews (no provider calls)
- Cron runs clients one after another and reports success/failure counts

Called by: main.py (router mount)
Depends on: services/sync_service.py, dependencies.py
"""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin, require_cron_secret
from ..models import PROVIDERS
from ..services import sync_service

router = APIRouter(tags=["sync"])


@router.post("/api/admin/clients/{client_id}/sync", dependencies=[Depends(require_admin)])
async def sync_client_now(client_id: int, db: Session = Depends(get_db)):
    try:
        result = await sync_service.sync_client(db, client_id)
    except sync_service.ClientNotFoundError:
        raise HTTPException(404, "Client not found")
    return result.dump()


@router.post("/api/admin/clients/{client_id}/sync/guest-happiness", dependencies=[Depends(require_admin)])
async def analyze_guest_happiness(client_id: int, db: Session = Depends(get_db)):
    try:
        happiness = await sync_service.analyze_guest_happiness(db, client_id)
    except sync_service.ClientNotFoundError:
        raise HTTPException(404, "Client not found")
    return {"success": True, "data": happiness.dump()}


@router.post("/api/admin/clients/{client_id}/sync/{provider}", dependencies=[Depends(require_admin)])
async def sync_provider_now(client_id: int, provider: str, db: Session = Depends(get_db)):
    if provider not in PROVIDERS:
        raise HTTPException(400, f"Unknown provider: {provider}")
    try:
        result = await sync_service.sync_client(db, client_id, provider=provider)
    except sync_service.ClientNotFoundError:
        raise HTTPException(404, "Client not found")
    return result.dump()


@router.get("/api/cron/sync", dependencies=[Depends(require_cron_secret)])
async def cron_sync(db: Session = Depends(get_db)):
    results = await sync_service.sync_all_clients(db)
    successful = sum(1 for r in results if r.success)
    logger.info("Cron sync: {} ok, {} failed", successful, len(results) - successful)
    return {
        "synced": len(results),
        "successful": successful,
        "failed": len(results) - successful,
        "results": [r.dump() for r in results],
    }
