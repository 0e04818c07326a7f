"""
schemas/sections.py — Typed records for the client's JSON-document sections

Each section is an ordered list replaced as a whole. Records are validated
here before any write so malformed admin input never reaches the database.

Business Rules:
- Stored keys are camelCase (canvaUrl, reviewCount, ...), matching the portal payload
- Unknown section names and malformed records raise SectionValidationError
- Theme sections are plain lists of strings

Called by: services/client_service.py, services/sync_service.py, connectors/clickup.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

HealthStatus = Literal["on-track", "needs-work", "critical"]


class SectionValidationError(ValueError):
    """Raised when a section payload does not match its schema."""

    def __init__(self, section: str, detail):
        self.section = section
        self.detail = detail
        super().__init__(f"Invalid data for section '{section}'")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)


class Metric(CamelModel):
    label: str
    value: str
    target: str
    status: HealthStatus


class ClientRequest(CamelModel):
    title: str
    type: str
    priority: Literal["high", "normal", "low"]
    deadline: str
    url: str = ""


class Milestone(CamelModel):
    task: str
    due: str
    status: Literal["done", "in-progress", "pending", "scheduled"]


class Campaign(CamelModel):
    title: str
    emoji: str
    window: str
    status: Literal["active", "planning", "completed"]
    goal: str
    progress: int = Field(ge=0, le=100)
    url: str = ""
    milestones: list[Milestone] = Field(default_factory=list)


class Asset(CamelModel):
    category: str
    icon: str
    description: str
    canva_url: str = ""


class Huddle(CamelModel):
    month: str
    date: str
    summary: str
    url: str = ""


class SocialPost(CamelModel):
    day: str
    platform: str
    content: str
    status: Literal["posted", "scheduled", "missed"]


class ReviewPlatform(CamelModel):
    platform: str
    rating: str
    review_count: int
    response_rate: str


class QuickLink(CamelModel):
    label: str
    url: str
    icon: str = ""


SECTION_SCHEMAS: dict[str, type] = {
    "metrics": Metric,
    "requests": ClientRequest,
    "campaigns": Campaign,
    "assets": Asset,
    "huddles": Huddle,
    "social_posts": SocialPost,
    "reviews": ReviewPlatform,
    "positive_themes": str,
    "negative_themes": str,
    "quick_links": QuickLink,
}

_ADAPTERS = {name: TypeAdapter(list[model]) for name, model in SECTION_SCHEMAS.items()}


def validate_section(section: str, data) -> list:
    """Validate a full section payload and return it in its stored (camelCase) form."""
    adapter = _ADAPTERS.get(section)
    if adapter is None:
        raise SectionValidationError(section, [{"msg": f"Unknown section: {section}"}])
    try:
        records = adapter.validate_python(data)
    except ValidationError as e:
        raise SectionValidationError(section, e.errors(include_url=False, include_context=False)) from e
    return [r.dump() if isinstance(r, CamelModel) else r for r in records]
