"""
clickup.py — ClickUp task lists → campaigns, requests, social posts

Pulls every task (closed included) from up to three configured lists and
reshapes them into portal section records.

Business Rules:
- Top-level tasks are campaigns; their subtasks are milestones
- Campaign progress = round(100 * done milestones / milestones), 0 with no milestones
- Status strings map by case-insensitive substring ("Completed" counts as complete)
- Requests list shows open tasks only (closed/complete/done are dropped)
- ClickUp priority ids: 1 urgent, 2 high, 3 normal, 4 low; missing → normal
- A social post whose due date has passed without being posted is "missed"
- A failing list is recorded in `errors`; the other lists are still synced
- Dates are rendered in UTC

Called by: services/sync_service.py (via connectors/registry.py)
Depends on: connectors/base.py, schemas/sections.py, schemas/providers.py
"""

import logging
import re
from datetime import datetime, timezone

from ..schemas.providers import ClickUpResult
from ..schemas.sections import Campaign, ClientRequest, Milestone, SocialPost
from ..utils import round_half_up, safe_int
from .base import ConfigurationError, ProviderClient, ProviderError

log = logging.getLogger(__name__)

CLICKUP_API = "https://api.clickup.com/api/v2"
MAX_PAGES = 100

EMOJI_RE = re.compile("[\U0001F300-\U0001F9FF\u2600-\u26FF\u2700-\u27BF]")
DEFAULT_EMOJI = "📋"
SOCIAL_PLATFORMS = ("instagram", "facebook", "tiktok", "twitter", "linkedin", "google", "youtube", "pinterest")

_DONE = ("complete", "closed", "done")
_ACTIVE = ("in progress", "active", "in review")
_SCHEDULED = ("scheduled", "ready")
_POSTED = _DONE + ("posted",)


# ── Status mapping ──────────────────────────────────────────────────────


def _status_of(task: dict) -> str:
    return ((task.get("status") or {}).get("status") or "").lower()


def _matches(lower: str, keywords: tuple[str, ...]) -> bool:
    return any(k in lower for k in keywords)


def map_campaign_status(status: str) -> str:
    lower = status.lower()
    if _matches(lower, _DONE):
        return "completed"
    if _matches(lower, _ACTIVE):
        return "active"
    return "planning"


def map_milestone_status(status: str) -> str:
    lower = status.lower()
    if _matches(lower, _DONE):
        return "done"
    if _matches(lower, _ACTIVE):
        return "in-progress"
    if _matches(lower, _SCHEDULED):
        return "scheduled"
    return "pending"


def map_priority(priority: dict | None) -> str:
    if not priority:
        return "normal"
    pid = safe_int(priority.get("id"))
    if pid is None:
        return "normal"
    if pid <= 2:
        return "high"
    if pid == 3:
        return "normal"
    return "low"


# ── Date formatting ─────────────────────────────────────────────────────


def _from_ms(unix_ms) -> datetime | None:
    ms = safe_int(unix_ms)
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def format_short_date(unix_ms) -> str:
    """'Feb 14' style, or '' when there is no date."""
    d = _from_ms(unix_ms)
    return f"{d:%b} {d.day}" if d else ""


def _long_date(unix_ms) -> str:
    d = _from_ms(unix_ms)
    return f"{d:%B} {d.day}, {d.year}" if d else ""


def format_date_window(start_ms, due_ms) -> str:
    start, due = _long_date(start_ms), _long_date(due_ms)
    if start and due:
        return f"{start} – {due}"
    if due:
        return f"Due {due}"
    return "TBD"


def day_of_week(unix_ms) -> str:
    d = _from_ms(unix_ms)
    return f"{d:%a}" if d else "TBD"


# ── Field helpers ───────────────────────────────────────────────────────


def _tags(task: dict) -> list[str]:
    return [t.get("name") or "" for t in task.get("tags") or []]


def _custom_field(task: dict, match) -> str:
    for field in task.get("custom_fields") or []:
        name = (field.get("name") or "").lower()
        if match(name) and field.get("value") not in (None, ""):
            return str(field["value"])
    return ""


def emoji_from_tags(tags: list[str]) -> str:
    for name in tags:
        m = EMOJI_RE.search(name)
        if m:
            return m.group(0)
    return DEFAULT_EMOJI


def request_type(task: dict) -> str:
    value = _custom_field(task, lambda n: n == "type" or "request type" in n)
    if value:
        return value
    tags = _tags(task)
    return tags[0] if tags else "Request"


def social_platform(task: dict) -> str:
    value = _custom_field(task, lambda n: n == "platform" or "channel" in n)
    if value:
        return value
    for name in _tags(task):
        lower = name.lower()
        for p in SOCIAL_PLATFORMS:
            if p in lower:
                return p.capitalize()
    return "Social"


def social_status(task: dict, now: datetime | None = None) -> str:
    lower = _status_of(task)
    if _matches(lower, _POSTED):
        return "posted"
    due = _from_ms(task.get("due_date"))
    if due and due < (now or datetime.now(timezone.utc)):
        return "missed"
    return "scheduled"


# ── Transforms ──────────────────────────────────────────────────────────


def transform_campaigns(tasks: list[dict]) -> list[Campaign]:
    campaigns = []
    for task in tasks:
        if task.get("parent"):
            continue
        subtasks = [t for t in tasks if t.get("parent") == task.get("id")]
        milestones = [
            Milestone(
                task=sub.get("name") or "",
                due=format_short_date(sub.get("due_date")),
                status=map_milestone_status(_status_of(sub)),
            )
            for sub in subtasks
        ]
        done = sum(1 for m in milestones if m.status == "done")
        progress = round_half_up(done / len(milestones) * 100) if milestones else 0
        goal = _custom_field(task, lambda n: "goal" in n or "objective" in n)
        campaigns.append(Campaign(
            title=task.get("name") or "",
            emoji=emoji_from_tags(_tags(task)),
            window=format_date_window(task.get("start_date"), task.get("due_date")),
            status=map_campaign_status(_status_of(task)),
            goal=goal or task.get("name") or "",
            progress=progress,
            url=task.get("url") or "",
            milestones=milestones,
        ))
    return campaigns


def transform_requests(tasks: list[dict]) -> list[ClientRequest]:
    return [
        ClientRequest(
            title=task.get("name") or "",
            type=request_type(task),
            priority=map_priority(task.get("priority")),
            deadline=format_short_date(task.get("due_date")) or "No deadline",
            url=task.get("url") or "",
        )
        for task in tasks
        if not _matches(_status_of(task), _DONE)
    ]


def transform_social_posts(tasks: list[dict], now: datetime | None = None) -> list[SocialPost]:
    return [
        SocialPost(
            day=day_of_week(task.get("due_date")),
            platform=social_platform(task),
            content=task.get("name") or "",
            status=social_status(task, now),
        )
        for task in tasks
    ]


def _list_error(label: str, e: Exception) -> str:
    if not isinstance(e, ProviderError):
        log.exception(f"ClickUp {label.lower()} list crashed")
    return f"{label} sync failed: {str(e) or e.__class__.__name__}"


# ── Client ──────────────────────────────────────────────────────────────


class ClickUpClient(ProviderClient):
    provider = "clickup"
    api_label = "ClickUp API"

    async def fetch_all_tasks(self, token: str, list_id: str, include_subtasks: bool = False) -> list[dict]:
        tasks: list[dict] = []
        for page in range(MAX_PAGES):
            params = {"page": page, "include_closed": "true"}
            if include_subtasks:
                params["subtasks"] = "true"
            data = await self._request(
                "GET",
                f"{CLICKUP_API}/list/{list_id}/task",
                headers={"Authorization": token},
                params=params,
            )
            tasks.extend(data.get("tasks") or [])
            if data.get("last_page", True):
                break
        else:
            log.warning(f"ClickUp list {list_id} still had pages after {MAX_PAGES}; stopped paginating")
        return tasks

    async def sync(self, config: dict) -> ClickUpResult:
        token = (config.get("api_token") or "").strip()
        if not token:
            raise ConfigurationError("No ClickUp API token configured")

        result = ClickUpResult()

        if config.get("campaigns_list_id"):
            try:
                tasks = await self.fetch_all_tasks(token, config["campaigns_list_id"], include_subtasks=True)
                result.campaigns = transform_campaigns(tasks)
            except Exception as e:
                result.errors.append(_list_error("Campaigns", e))

        if config.get("requests_list_id"):
            try:
                tasks = await self.fetch_all_tasks(token, config["requests_list_id"])
                result.requests = transform_requests(tasks)
            except Exception as e:
                result.errors.append(_list_error("Requests", e))

        if config.get("social_list_id"):
            try:
                tasks = await self.fetch_all_tasks(token, config["social_list_id"])
                result.social_posts = transform_social_posts(tasks)
            except Exception as e:
                result.errors.append(_list_error("Social", e))

        if result.errors:
            log.warning(f"ClickUp sync finished with {len(result.errors)} list error(s)")
        return result
