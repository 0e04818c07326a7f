"""
schemas/integrations.py — Pydantic models for the integration admin endpoints

Business Rules:
- Provider must be one of the five supported providers
- Each provider's config must carry its required key (api_token, property_id, ...)
- Config values are strings; they are encrypted before storage

Called by: routers/integrations.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

Provider = Literal[
    "clickup",
    "google_analytics",
    "google_business",
    "google_search_console",
    "yelp",
]

REQUIRED_CONFIG_KEYS: dict[str, tuple[str, ...]] = {
    "clickup": ("api_token",),
    "google_analytics": ("property_id",),
    "google_business": ("location_id",),
    "google_search_console": ("site_url",),
    "yelp": ("business_id",),
}


class IntegrationUpsert(BaseModel):
    provider: Provider
    config: dict[str, str] = Field(default_factory=dict)
    enabled: bool = True

    @model_validator(mode="after")
    def _require_provider_keys(self):
        missing = [k for k in REQUIRED_CONFIG_KEYS[self.provider] if not self.config.get(k, "").strip()]
        if missing:
            raise ValueError(f"{self.provider} config requires: {', '.join(missing)}")
        return self


class IntegrationToggle(BaseModel):
    provider: Provider
    enabled: bool


class IntegrationOut(BaseModel):
    id: int
    provider: str
    enabled: bool
    config: dict[str, str] = Field(default_factory=dict)  # masked
    last_synced_at: str | None = None
    sync_error: str | None = None
