"""
schemas/clients.py — Pydantic models for client admin endpoints

Business Rules:
- Slug is lowercase letters, digits and dashes
- Updates touch scalar fields only; sections go through the section endpoint
- Section writes always carry the full list (no partial edits)

Called by: routers/clients.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    location: str = ""
    tagline: str | None = None
    logo_url: str | None = None
    brand_color: str | None = None
    brand_theme: dict[str, str] | None = None


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    location: str | None = None
    tagline: str | None = None
    logo_url: str | None = None
    brand_color: str | None = None
    brand_theme: dict[str, str] | None = None
    overall_health: Literal["on-track", "needs-work", "critical"] | None = None
    health_summary: str | None = None
    top_issue: str | None = None
    action_needed: str | None = None
    next_huddle: str | None = None


class SectionUpdate(BaseModel):
    data: list
