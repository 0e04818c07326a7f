"""
routers/clients.py — Client admin: CRUD, section replace, portal token

Business Rules:
- Every route requires an admin session
- Sections are replaced whole; malformed records are rejected with 400 before any write
- Regenerating the token immediately invalidates the old portal link

Called by: main.py (router mount)
Depends on: services/client_service.py, schemas/clients.py, schemas/sections.py
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin
from ..schemas.clients import ClientCreate, ClientUpdate, SectionUpdate
from ..schemas.sections import SectionValidationError
from ..services import client_service

router = APIRouter(prefix="/api/admin/clients", tags=["clients"], dependencies=[Depends(require_admin)])


def _get_or_404(db: Session, client_id: int):
    client = client_service.get_client_by_id(db, client_id)
    if not client:
        raise HTTPException(404, "Client not found")
    return client


@router.get("")
def list_clients(db: Session = Depends(get_db)):
    return [client_service.client_to_admin(c) for c in client_service.list_clients(db)]


@router.post("", status_code=201)
def create_client(body: ClientCreate, db: Session = Depends(get_db)):
    try:
        client = client_service.create_client(db, **body.model_dump())
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, f"Slug '{body.slug}' is already taken")
    return client_service.client_to_admin(client)


@router.get("/{client_id}")
def get_client(client_id: int, db: Session = Depends(get_db)):
    return client_service.client_to_admin(_get_or_404(db, client_id))


@router.put("/{client_id}")
def update_client(client_id: int, body: ClientUpdate, db: Session = Depends(get_db)):
    client = client_service.update_client(db, client_id, **body.model_dump(exclude_unset=True))
    if not client:
        raise HTTPException(404, "Client not found")
    return client_service.client_to_admin(client)


@router.delete("/{client_id}")
def delete_client(client_id: int, db: Session = Depends(get_db)):
    if not client_service.delete_client(db, client_id):
        raise HTTPException(404, "Client not found")
    return {"ok": True}


@router.put("/{client_id}/sections/{section}")
def replace_section(client_id: int, section: str, body: SectionUpdate, db: Session = Depends(get_db)):
    _get_or_404(db, client_id)
    try:
        client_service.update_client_section(db, client_id, section, body.data)
    except SectionValidationError as e:
        logger.info("Rejected {} update for client {}", section, client_id)
        raise HTTPException(400, {"message": str(e), "errors": jsonable_encoder(e.detail)})
    return {"ok": True, "section": section, "count": len(body.data)}


@router.post("/{client_id}/token")
def regenerate_token(client_id: int, db: Session = Depends(get_db)):
    token = client_service.regenerate_token(db, client_id)
    if not token:
        raise HTTPException(404, "Client not found")
    logger.info("Portal token regenerated for client {}", client_id)
    return {"portal_token": token}
