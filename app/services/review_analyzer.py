"""
review_analyzer.py — Guest Happiness: sentiment, menu mentions, response time.

Reads the client's stored recent reviews and platform rows and produces the
Guest Happiness panel. Review text goes to Claude when a key is configured;
otherwise (or on any AI failure) the panel is built from rating statistics.

Business Rules:
- AI is only asked when at least one review has more than 5 chars of text
- Digest sent to the model: latest 20 reviews, text cut to 300 chars
- Percentages are clamped to 0..100; the stats fallback always sums to 100
- A review rated 3 or lower is "critical" for response-time purposes

Called by: routers/sync.py (guest-happiness action)
Depends on: utils/claude_client.py, schemas/sync.py
"""

import json
import logging
from datetime import datetime, timezone

from ..schemas.providers import IndividualReview
from ..schemas.sections import ReviewPlatform
from ..schemas.sync import GuestHappiness, MenuItem, MenuMentions, ResponseTime, Sentiment
from ..utils import round_half_up, safe_float
from ..utils.claude_client import claude_structured

log = logging.getLogger(__name__)

AI_REVIEW_LIMIT = 20
AI_TEXT_LIMIT = 300

SYSTEM_PROMPT = (
    "You read customer reviews for a cafe or restaurant and summarize them for the owner. "
    "Be warm, encouraging and specific."
)

SENTIMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "summary": {"type": "string"},
        "positivePercent": {"type": "integer"},
        "negativePercent": {"type": "integer"},
        "topPraises": {"type": "array", "items": {"type": "string"}},
        "topComplaints": {"type": "array", "items": {"type": "string"}},
        "menuItems": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "mentions": {"type": "integer"},
                    "sentiment": {"type": "string", "enum": ["positive", "mixed", "negative"]},
                },
                "required": ["name", "mentions", "sentiment"],
            },
        },
    },
    "required": ["summary", "positivePercent", "negativePercent", "topPraises", "topComplaints", "menuItems"],
}


def _clamp_pct(value, default: int) -> int:
    n = safe_float(value)
    if n is None:
        n = default
    return max(0, min(100, round_half_up(n)))


# ── Response time ───────────────────────────────────────────────────────


def calculate_response_time(reviews: list[IndividualReview]) -> ResponseTime:
    critical = [r for r in reviews if r.rating <= 3]
    total = len(critical)
    replied = sum(1 for r in critical if r.reply_text)

    if total == 0:
        return ResponseTime(summary="No critical reviews to respond to — your customers are happy!")
    if replied == 0:
        need = "review needs" if total == 1 else "reviews need"
        return ResponseTime(
            summary=f"{total} {need} a response — replying shows you care!",
            total_negative=total,
        )

    rate = round_half_up(replied / total * 100)
    if rate >= 80:
        tail = "great responsiveness!"
    else:
        tail = "responding to the rest could help turn things around."
    return ResponseTime(
        summary=f"You've replied to {replied} of {total} critical reviews ({rate}%) — {tail}",
        replied_count=replied,
        total_negative=total,
    )


# ── Sentiment ───────────────────────────────────────────────────────────


def sentiment_from_stats(
    reviews: list[IndividualReview], platforms: list[ReviewPlatform]
) -> tuple[Sentiment, MenuMentions]:
    total = sum(p.review_count for p in platforms)
    weighted = sum((safe_float(p.rating.replace("/5", "")) or 0.0) * p.review_count for p in platforms)
    avg = weighted / total if total > 0 else 0.0

    positive = max(0, min(100, round_half_up(avg / 5 * 100)))
    n_platforms = len(platforms)
    platform_word = "platform" if n_platforms == 1 else "platforms"

    if avg >= 4.5:
        summary = (
            f"Your customers love you! Across {total} reviews on {n_platforms} {platform_word}, "
            f"you're sitting at {avg:.1f} stars. That's seriously impressive — keep doing what you're doing."
        )
    elif avg >= 4.0:
        summary = (
            f"Solid reputation with {avg:.1f} stars across {total} reviews. Your customers are generally "
            "happy — a few more 5-star experiences could push you even higher."
        )
    elif avg >= 3.5:
        summary = (
            f"You've got {total} reviews averaging {avg:.1f} stars — room to grow! Focusing on the "
            "feedback could help turn those 3-star experiences into 5-star ones."
        )
    else:
        summary = (
            f"With {total} reviews averaging {avg:.1f} stars, there's real opportunity to improve. "
            "Let's focus on addressing customer concerns and building momentum."
        )

    praises = (
        ["Consistent quality", "Friendly experience"]
        if any(r.rating >= 4 for r in reviews)
        else ["Building a loyal customer base"]
    )
    complaints = ["Some experiences fell short"] if any(r.rating <= 2 for r in reviews) else []

    sentiment = Sentiment(
        summary=summary,
        positive_percent=positive,
        negative_percent=100 - positive,
        top_praises=praises,
        top_complaints=complaints,
    )
    return sentiment, MenuMentions()


def _digest(reviews: list[IndividualReview]) -> list[dict]:
    with_text = [r for r in reviews if r.text and len(r.text) > 5]
    return [
        {"rating": r.rating, "text": r.text[:AI_TEXT_LIMIT], "platform": r.platform}
        for r in with_text[:AI_REVIEW_LIMIT]
    ]


async def sentiment_from_ai(reviews: list[IndividualReview]) -> tuple[Sentiment, MenuMentions] | None:
    digest = _digest(reviews)
    if not digest:
        return None

    prompt = (
        f"Analyze these {len(digest)} customer reviews.\n\n"
        f"Reviews:\n{json.dumps(digest)}\n\n"
        "Rules:\n"
        "- summary: 2-3 warm sentences to the owner, mention specific highlights\n"
        "- topPraises/topComplaints: be specific (\"Fresh smoothies\", not \"Food quality\")\n"
        "- menuItems: specific food/drink items mentioned; empty list if none\n"
        "- positivePercent + negativePercent must equal 100"
    )
    parsed = await claude_structured(prompt, SENTIMENT_SCHEMA, system=SYSTEM_PROMPT)
    if not parsed:
        return None

    items = []
    for item in (parsed.get("menuItems") or [])[:8]:
        if not isinstance(item, dict):
            continue
        sentiment = item.get("sentiment")
        items.append(MenuItem(
            name=item.get("name") or "Unknown",
            mentions=max(1, int(safe_float(item.get("mentions")) or 1)),
            sentiment=sentiment if sentiment in ("positive", "mixed", "negative") else "positive",
        ))

    return (
        Sentiment(
            summary=parsed.get("summary") or "Your customers have been sharing their thoughts!",
            positive_percent=_clamp_pct(parsed.get("positivePercent"), 80),
            negative_percent=_clamp_pct(parsed.get("negativePercent"), 20),
            top_praises=[str(p) for p in (parsed.get("topPraises") or [])][:5],
            top_complaints=[str(c) for c in (parsed.get("topComplaints") or [])][:5],
        ),
        MenuMentions(items=items),
    )


async def analyze_reviews(
    reviews: list[IndividualReview], platforms: list[ReviewPlatform]
) -> GuestHappiness:
    analysis = None
    try:
        analysis = await sentiment_from_ai(reviews)
    except (ValueError, TypeError) as e:
        log.warning(f"AI review analysis returned unusable data, using stats: {e}")
    if analysis is None:
        analysis = sentiment_from_stats(reviews, platforms)

    sentiment, menu = analysis
    return GuestHappiness(
        sentiment=sentiment,
        menu_mentions=menu,
        response_time=calculate_response_time(reviews),
        analyzed_at=datetime.now(timezone.utc).isoformat(),
        reviews_analyzed=len(reviews),
    )
