"""Google Business Profile — average rating, review count, latest 50 reviews."""

from ..schemas.providers import BusinessReviewData, IndividualReview
from ..utils import safe_float, safe_int
from .base import ProviderClient
from .google_auth import BUSINESS_SCOPE, GoogleServiceAccountAuth

GBP_API = "https://mybusinessaccountmanagement.googleapis.com/v1"
GBP_BUSINESS_INFO = "https://mybusinessbusinessinformation.googleapis.com/v1"

STAR_MAP = {"ONE": 1, "TWO": 2, "THREE": 3, "FOUR": 4, "FIVE": 5}


class GoogleBusinessClient(ProviderClient):
    provider = "google_business"
    api_label = "GBP API"

    def __init__(self, auth: GoogleServiceAccountAuth, timeout: float = 30.0):
        super().__init__(timeout)
        self.auth = auth

    @staticmethod
    def reviews_url(location_id: str, account_id: str = "") -> str:
        if account_id:
            return f"{GBP_API}/accounts/{account_id}/locations/{location_id}/reviews"
        return f"{GBP_BUSINESS_INFO}/{location_id}/reviews"

    async def sync(self, config: dict) -> BusinessReviewData:
        location_id = self._require(config, "location_id", "No Google Business location ID configured")
        account_id = (config.get("account_id") or "").strip()

        token = await self.auth.get_access_token(BUSINESS_SCOPE)
        data = await self._request(
            "GET",
            self.reviews_url(location_id, account_id),
            headers={"Authorization": f"Bearer {token}"},
            params={"pageSize": 50},
        )
        return self._parse(data)

    def _parse(self, data: dict) -> BusinessReviewData:
        reviews = [self._parse_review(r) for r in data.get("reviews") or []]
        return BusinessReviewData(
            average_rating=safe_float(data.get("averageRating")) or 0.0,
            total_reviews=safe_int(data.get("totalReviewCount")) or len(reviews),
            reviews=reviews,
        )

    @staticmethod
    def _parse_review(review: dict) -> IndividualReview:
        reply = review.get("reviewReply") or {}
        return IndividualReview(
            platform="Google",
            external_id=review.get("reviewId"),
            author_name=(review.get("reviewer") or {}).get("displayName") or "Anonymous",
            rating=STAR_MAP.get(review.get("starRating"), 5),
            text=review.get("comment") or "",
            reply_text=reply.get("comment") or None,
            review_date=review.get("createTime") or "",
        )
