"""
routers/integrations.py — Per-client integration config (admin only)

Business Rules:
- Configs are encrypted on write and only ever returned masked
- Missing encryption key surfaces as 503 so the admin knows the server is misconfigured

Called by: main.py (router mount)
Depends on: services/integration_service.py, services/credential_service.py
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin
from ..schemas.integrations import IntegrationOut, IntegrationToggle, IntegrationUpsert
from ..services import client_service, integration_service
from ..services.credential_service import KeyConfigurationError

router = APIRouter(
    prefix="/api/admin/clients/{client_id}/integrations",
    tags=["integrations"],
    dependencies=[Depends(require_admin)],
)


def _require_client(db: Session, client_id: int) -> None:
    if not client_service.get_client_by_id(db, client_id):
        raise HTTPException(404, "Client not found")


@router.get("", response_model=list[IntegrationOut])
def list_integrations(client_id: int, db: Session = Depends(get_db)):
    _require_client(db, client_id)
    return [
        integration_service.serialize_integration(i)
        for i in integration_service.get_integrations_for_client(db, client_id)
    ]


@router.post("", response_model=IntegrationOut)
def upsert_integration(client_id: int, body: IntegrationUpsert, db: Session = Depends(get_db)):
    _require_client(db, client_id)
    try:
        integration = integration_service.upsert_integration(
            db, client_id, body.provider, body.config, body.enabled
        )
    except KeyConfigurationError as e:
        raise HTTPException(503, str(e))
    return integration_service.serialize_integration(integration)


@router.patch("", response_model=IntegrationOut)
def toggle_integration(client_id: int, body: IntegrationToggle, db: Session = Depends(get_db)):
    integration = integration_service.toggle_integration(db, client_id, body.provider, body.enabled)
    if not integration:
        raise HTTPException(404, "Integration not found")
    return integration_service.serialize_integration(integration)


@router.delete("/{provider}")
def delete_integration(client_id: int, provider: str, db: Session = Depends(get_db)):
    if not integration_service.delete_integration(db, client_id, provider):
        raise HTTPException(404, "Integration not found")
    return {"ok": True}
