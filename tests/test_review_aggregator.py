"""
test_review_aggregator.py — Tests for merging Google + Yelp review data

Called by: pytest
Depends on: app/services/review_aggregator.py
"""

from app.schemas.providers import BusinessReviewData, IndividualReview, YelpReviewData
from app.services.review_aggregator import (
    aggregate_reviews,
    build_platform_stats,
    combined_average,
    extract_themes,
    weekly_vibe,
)


def _review(rating, text="", date="", platform="Google", reply=None, rid=None):
    return IndividualReview(
        platform=platform,
        external_id=rid,
        rating=rating,
        text=text,
        review_date=date,
        reply_text=reply,
    )


def test_nothing_in_nothing_out():
    result = aggregate_reviews(None, None)
    assert result.platforms == []
    assert result.recent_reviews == []
    assert result.positive_themes == []
    assert result.negative_themes == []
    assert result.weekly_vibe == "No new reviews this week — a quiet one!"


def test_google_only_with_one_reply():
    google = BusinessReviewData(
        average_rating=4.0,
        total_reviews=3,
        reviews=[
            _review(5, "Fresh smoothies and friendly staff", "2026-03-03T10:00:00Z"),
            _review(5, "So fresh, so friendly. Fresh!", "2026-03-05T10:00:00Z"),
            _review(2, "Slow service and cold food", "2026-03-01T10:00:00Z", reply="Sorry!"),
        ],
    )
    result = aggregate_reviews(google, None)

    assert len(result.platforms) == 1
    row = result.platforms[0]
    assert (row.platform, row.rating, row.review_count, row.response_rate) == ("Google", "4.0/5", 3, "33%")
    assert result.weekly_vibe.startswith("2 out of 3 reviews this week were positive — great momentum!")
    assert "4.0-star average is solid" in result.weekly_vibe
    assert result.positive_themes == ["Fresh (2 mentions)", "Friendly (2 mentions)"]
    assert result.negative_themes == ["Slow", "Cold"]


def test_yelp_platform_row_has_no_response_rate():
    yelp = YelpReviewData(rating=4.5, review_count=87, reviews=[])
    rows = build_platform_stats(None, yelp)
    assert rows[0].platform == "Yelp"
    assert rows[0].rating == "4.5/5"
    assert rows[0].response_rate == "N/A"


def test_platform_without_reviews_is_omitted():
    assert build_platform_stats(BusinessReviewData(), YelpReviewData()) == []


def test_recent_reviews_newest_first_missing_dates_last():
    google = BusinessReviewData(total_reviews=2, average_rating=4, reviews=[
        _review(4, date="", rid="g-nodate"),
        _review(4, date="2026-03-01T00:00:00Z", rid="g-old"),
    ])
    yelp = YelpReviewData(rating=4, review_count=1, reviews=[
        _review(5, date="2026-03-04 12:00:00", platform="Yelp", rid="y-new"),
    ])
    result = aggregate_reviews(google, yelp)
    assert [r.external_id for r in result.recent_reviews] == ["y-new", "g-old", "g-nodate"]


def test_equal_dates_keep_input_order():
    same = "2026-03-01T00:00:00Z"
    google = BusinessReviewData(total_reviews=1, reviews=[_review(4, date=same, rid="g")])
    yelp = YelpReviewData(review_count=1, reviews=[_review(4, date=same, platform="Yelp", rid="y")])
    assert [r.external_id for r in aggregate_reviews(google, yelp).recent_reviews] == ["g", "y"]


def test_recent_reviews_capped():
    reviews = [_review(5, date=f"2026-03-{d:02d}T00:00:00Z", rid=str(d)) for d in range(1, 26)]
    result = aggregate_reviews(BusinessReviewData(total_reviews=25, reviews=reviews), None)
    assert len(result.recent_reviews) == 20
    assert result.recent_reviews[0].external_id == "25"


def test_aggregation_is_deterministic():
    google = BusinessReviewData(average_rating=4.2, total_reviews=2, reviews=[
        _review(5, "great coffee", "2026-03-02T00:00:00Z"),
        _review(3, "a bit expensive", "2026-03-01T00:00:00Z"),
    ])
    assert aggregate_reviews(google, None) == aggregate_reviews(google, None)


def test_combined_average_weighted_by_count():
    google = BusinessReviewData(average_rating=4.0, total_reviews=100)
    yelp = YelpReviewData(rating=5.0, review_count=100)
    assert combined_average(google, yelp) == 4.5
    assert combined_average(BusinessReviewData(average_rating=4.0), None) == 0.0


def test_keyword_counted_once_per_review():
    positive, _ = extract_themes([_review(5, "Great great GREAT")])
    assert positive == ["Great"]


def test_themes_top_five_only():
    text = "fresh delicious amazing great excellent friendly fast"
    positive, negative = extract_themes([_review(5, text)])
    assert len(positive) == 5
    assert negative == []


# ── Weekly vibe ──────────────────────────────────────────────────────


def test_vibe_all_positive_singular():
    vibe = weekly_vibe([_review(5)], 4.8)
    assert vibe == (
        "All 1 review this week was positive — your customers are loving it! "
        "Your overall 4.8-star average is looking great."
    )


def test_vibe_tough_week():
    vibe = weekly_vibe([_review(1), _review(2), _review(5)], 3.2)
    assert vibe.startswith("A tougher week with 2 critical reviews")
    assert vibe.endswith("needs attention — let's focus on response rate and addressing concerns.")


def test_vibe_mixed():
    vibe = weekly_vibe([_review(3)], 3.6)
    assert vibe.startswith("Mixed feedback this week with 1 review")
    assert "room to climb" in vibe
