"""Connector startup visibility — log which providers have global credentials."""

from loguru import logger

from .config import settings


def log_connector_status() -> dict[str, bool]:
    """Check each provider's server-wide prerequisites and log enabled/disabled status.

    ClickUp needs only per-client config, so it is always available. The Google
    providers share the service account; Yelp needs the global API key.
    Returns dict mapping provider label to enabled (True/False).
    """
    google = bool(settings.google_service_account_json)
    connectors = {
        "ClickUp": True,
        "Google Analytics": google,
        "Google Search Console": google,
        "Google Business Profile": google,
        "Yelp": bool(settings.yelp_api_key),
        "Anthropic AI (guest happiness)": bool(settings.anthropic_api_key),
        "Credential store": len(settings.integration_encryption_key) == 64,
    }

    enabled = {k for k, v in connectors.items() if v}
    disabled = {k for k, v in connectors.items() if not v}

    if enabled:
        logger.info("Connectors enabled: {}", ", ".join(sorted(enabled)))
    if disabled:
        logger.warning("Connectors disabled (missing credentials): {}", ", ".join(sorted(disabled)))

    return connectors
