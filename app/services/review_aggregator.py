"""
review_aggregator.py — Merge Google + Yelp reviews into portal review data.

Produces the per-platform stat rows, the 20 most recent reviews, keyword
themes, and the "weekly vibe" sentence.

Business Rules:
- Pure and deterministic: same input, same output
- Reviews sorted newest first; missing/unparseable dates sort last; ties keep input order
- Combined average is weighted by each platform's total review count (0 when no counts)
- Google response rate = reviews with a reply / reviews fetched; Yelp has none ("N/A")
- A review counts once per keyword no matter how often the word appears in it
- Rating >= 4 is positive, <= 2 is critical; rating buckets are low-inclusive

Called by: services/sync_service.py
Depends on: schemas/providers.py, schemas/sync.py
"""

from ..schemas.providers import BusinessReviewData, IndividualReview, YelpReviewData
from ..schemas.sections import ReviewPlatform
from ..schemas.sync import AggregatedReviews
from ..utils import round_half_up, timestamp_of

RECENT_REVIEWS_LIMIT = 20
TOP_THEMES = 5

POSITIVE_KEYWORDS = (
    "fresh", "delicious", "amazing", "great", "excellent",
    "friendly", "fast", "clean", "beautiful", "love",
    "best", "recommend", "perfect", "wonderful", "fantastic",
    "awesome", "tasty", "good", "healthy", "quick",
)

NEGATIVE_KEYWORDS = (
    "slow", "wait", "cold", "expensive", "price",
    "rude", "dirty", "small", "portion", "wrong",
    "mistake", "bad", "terrible", "worst", "disappointing",
    "overpriced", "mediocre", "bland", "stale",
)


def _plural(n: int, singular: str = "", plural: str = "s") -> str:
    return singular if n == 1 else plural


# ── Platform stats ──────────────────────────────────────────────────────


def build_platform_stats(
    google: BusinessReviewData | None, yelp: YelpReviewData | None
) -> list[ReviewPlatform]:
    platforms = []
    if google and (google.total_reviews > 0 or google.reviews):
        replied = sum(1 for r in google.reviews if r.reply_text)
        rate = round_half_up(replied / (len(google.reviews) or 1) * 100)
        platforms.append(ReviewPlatform(
            platform="Google",
            rating=f"{google.average_rating:.1f}/5",
            review_count=google.total_reviews,
            response_rate=f"{rate}%",
        ))
    if yelp and (yelp.review_count > 0 or yelp.reviews):
        platforms.append(ReviewPlatform(
            platform="Yelp",
            rating=f"{yelp.rating:.1f}/5",
            review_count=yelp.review_count,
            response_rate="N/A",
        ))
    return platforms


# ── Themes ──────────────────────────────────────────────────────────────


def _top_keywords(reviews: list[IndividualReview], keywords: tuple[str, ...]) -> list[str]:
    counts: dict[str, int] = {}
    for review in reviews:
        text = (review.text or "").lower()
        for keyword in keywords:
            if keyword in text:
                counts[keyword] = counts.get(keyword, 0) + 1

    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:TOP_THEMES]
    return [
        f"{kw.capitalize()} ({n} mentions)" if n > 1 else kw.capitalize()
        for kw, n in ranked
    ]


def extract_themes(reviews: list[IndividualReview]) -> tuple[list[str], list[str]]:
    return _top_keywords(reviews, POSITIVE_KEYWORDS), _top_keywords(reviews, NEGATIVE_KEYWORDS)


# ── Weekly vibe ─────────────────────────────────────────────────────────


def weekly_vibe(reviews: list[IndividualReview], avg_rating: float) -> str:
    if not reviews:
        return "No new reviews this week — a quiet one!"

    total = len(reviews)
    positive = sum(1 for r in reviews if r.rating >= 4)
    negative = sum(1 for r in reviews if r.rating <= 2)

    if negative == 0 and positive == total:
        vibe = (
            f"All {total} review{_plural(total)} this week {_plural(total, 'was', 'were')} "
            "positive — your customers are loving it! "
        )
    elif positive > negative:
        vibe = f"{positive} out of {total} reviews this week were positive — great momentum! "
    elif negative > positive:
        vibe = (
            f"A tougher week with {negative} critical review{_plural(negative)} "
            "— but every piece of feedback is a chance to grow. "
        )
    else:
        vibe = f"Mixed feedback this week with {total} review{_plural(total)} — some wins, some areas to improve. "

    avg = f"{avg_rating:.1f}"
    if avg_rating >= 4.5:
        vibe += f"Your overall {avg}-star average is looking great."
    elif avg_rating >= 4.0:
        vibe += f"Your {avg}-star average is solid — a few more 5-star reviews will push you higher."
    elif avg_rating >= 3.5:
        vibe += f"Your {avg}-star average has room to climb — responding to reviews can help a lot."
    else:
        vibe += f"Your {avg}-star average needs attention — let's focus on response rate and addressing concerns."
    return vibe


# ── Main aggregation ────────────────────────────────────────────────────


def combined_average(google: BusinessReviewData | None, yelp: YelpReviewData | None) -> float:
    weighted = 0.0
    count = 0
    if google:
        weighted += google.average_rating * google.total_reviews
        count += google.total_reviews
    if yelp:
        weighted += yelp.rating * yelp.review_count
        count += yelp.review_count
    return weighted / count if count > 0 else 0.0


def aggregate_reviews(
    google: BusinessReviewData | None,
    yelp: YelpReviewData | None,
    recent_limit: int = RECENT_REVIEWS_LIMIT,
) -> AggregatedReviews:
    all_reviews = list(google.reviews if google else []) + list(yelp.reviews if yelp else [])
    # sorted() is stable, so equal dates keep Google-then-Yelp input order
    all_reviews = sorted(all_reviews, key=lambda r: timestamp_of(r.review_date), reverse=True)

    positive, negative = extract_themes(all_reviews)
    return AggregatedReviews(
        platforms=build_platform_stats(google, yelp),
        recent_reviews=all_reviews[:recent_limit],
        positive_themes=positive,
        negative_themes=negative,
        weekly_vibe=weekly_vibe(all_reviews, combined_average(google, yelp)),
    )
