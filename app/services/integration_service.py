"""
integration_service.py — Per-client provider configuration store.

Business Rules:
- One row per (client, provider); upsert replaces config and enabled flag
- Config is encrypted before it is written and masked before it is returned
- A config that fails to decrypt is treated as empty (logged); a missing key still raises
- Success sets last_synced_at and clears sync_error; failure sets sync_error only
- Enabled integrations are returned ordered by provider key (the sync order)

Called by: routers/integrations.py, services/sync_service.py
Depends on: models (ClientIntegration), services/credential_service.py
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..models import PROVIDERS, ClientIntegration
from .credential_service import DecryptionError, decrypt_config, encrypt_config, mask_config

log = logging.getLogger(__name__)


class UnknownProviderError(ValueError):
    pass


def _check_provider(provider: str) -> None:
    if provider not in PROVIDERS:
        raise UnknownProviderError(f"Unknown provider: {provider}")


def get_integrations_for_client(db: Session, client_id: int) -> list[ClientIntegration]:
    return (
        db.query(ClientIntegration)
        .filter_by(client_id=client_id)
        .order_by(ClientIntegration.provider)
        .all()
    )


def get_integration(db: Session, client_id: int, provider: str) -> ClientIntegration | None:
    return db.query(ClientIntegration).filter_by(client_id=client_id, provider=provider).first()


def get_integration_config(integration: ClientIntegration) -> dict:
    """Decrypted config for one row, or {} if it cannot be decrypted."""
    try:
        return decrypt_config(integration.config)
    except DecryptionError as e:
        log.error(
            f"Config for client {integration.client_id} / {integration.provider} "
            f"could not be decrypted: {e}"
        )
        return {}


def get_integration_with_config(db: Session, client_id: int, provider: str) -> tuple[ClientIntegration, dict] | None:
    integration = get_integration(db, client_id, provider)
    if not integration:
        return None
    return integration, get_integration_config(integration)


def upsert_integration(
    db: Session, client_id: int, provider: str, config: dict, enabled: bool = True
) -> ClientIntegration:
    _check_provider(provider)
    encrypted = encrypt_config(config)
    integration = get_integration(db, client_id, provider)
    if integration:
        integration.config = encrypted
        integration.enabled = enabled
        integration.updated_at = datetime.now(timezone.utc)
    else:
        integration = ClientIntegration(
            client_id=client_id, provider=provider, config=encrypted, enabled=enabled
        )
        db.add(integration)
    db.commit()
    db.refresh(integration)
    log.info(f"Integration {provider} saved for client {client_id} (enabled={enabled})")
    return integration


def toggle_integration(db: Session, client_id: int, provider: str, enabled: bool) -> ClientIntegration | None:
    integration = get_integration(db, client_id, provider)
    if not integration:
        return None
    integration.enabled = enabled
    integration.updated_at = datetime.now(timezone.utc)
    db.commit()
    return integration


def delete_integration(db: Session, client_id: int, provider: str) -> bool:
    integration = get_integration(db, client_id, provider)
    if not integration:
        return False
    db.delete(integration)
    db.commit()
    return True


def update_sync_status(db: Session, client_id: int, provider: str, error: str | None = None) -> None:
    integration = get_integration(db, client_id, provider)
    if not integration:
        return
    now = datetime.now(timezone.utc)
    if error:
        integration.sync_error = error[:1000]
    else:
        integration.last_synced_at = now
        integration.sync_error = None
    integration.updated_at = now
    db.commit()


def get_enabled_integrations(db: Session, client_id: int) -> list[ClientIntegration]:
    return (
        db.query(ClientIntegration)
        .filter_by(client_id=client_id, enabled=True)
        .order_by(ClientIntegration.provider)
        .all()
    )


def get_clients_with_integrations(db: Session) -> list[int]:
    """Distinct ids of clients with at least one enabled integration."""
    rows = (
        db.query(ClientIntegration.client_id)
        .filter(ClientIntegration.enabled.is_(True))
        .distinct()
        .order_by(ClientIntegration.client_id)
        .all()
    )
    return [r[0] for r in rows]


def serialize_integration(integration: ClientIntegration) -> dict:
    """Masked, API-safe view of an integration row."""
    return {
        "id": integration.id,
        "provider": integration.provider,
        "enabled": integration.enabled,
        "config": mask_config(get_integration_config(integration)),
        "last_synced_at": integration.last_synced_at.isoformat() if integration.last_synced_at else None,
        "sync_error": integration.sync_error,
    }
