"""Yelp Fusion API — business rating, review count, 3 newest reviews."""

from urllib.parse import quote

from ..schemas.providers import IndividualReview, YelpReviewData
from ..utils import safe_float, safe_int
from .base import ConfigurationError, ProviderClient

YELP_API = "https://api.yelp.com/v3"


class YelpClient(ProviderClient):
    provider = "yelp"
    api_label = "Yelp API"

    def __init__(self, api_key: str, timeout: float = 30.0):
        super().__init__(timeout)
        self.api_key = api_key

    async def _get(self, endpoint: str, **params) -> dict:
        return await self._request(
            "GET",
            f"{YELP_API}{endpoint}",
            headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
            params=params or None,
        )

    async def sync(self, config: dict) -> YelpReviewData:
        if not self.api_key:
            raise ConfigurationError("YELP_API_KEY is not configured")
        business_id = self._require(config, "business_id", "No Yelp business ID configured")

        path = f"/businesses/{quote(business_id, safe='')}"
        business = await self._get(path)
        reviews = await self._get(f"{path}/reviews", limit=3, sort_by="newest")
        return self._parse(business, reviews)

    def _parse(self, business: dict, reviews: dict) -> YelpReviewData:
        parsed = []
        for r in reviews.get("reviews") or []:
            rating = safe_int(r.get("rating"))
            if not rating:
                continue
            parsed.append(IndividualReview(
                platform="Yelp",
                external_id=r.get("id"),
                author_name=(r.get("user") or {}).get("name") or "Anonymous",
                rating=max(1, min(5, rating)),
                text=r.get("text") or "",
                review_date=r.get("time_created") or "",
            ))
        return YelpReviewData(
            rating=safe_float(business.get("rating")) or 0.0,
            review_count=safe_int(business.get("review_count")) or 0,
            reviews=parsed,
            business_url=business.get("url") or "",
        )
