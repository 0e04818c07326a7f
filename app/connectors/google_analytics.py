"""Google Analytics 4 Data API — sessions, users, duration, bounce rate, top pages."""

import logging

from ..schemas.providers import AnalyticsMetrics, TopPage
from ..utils import safe_float, safe_int
from .base import ProviderClient
from .google_auth import ANALYTICS_SCOPE, GoogleServiceAccountAuth

log = logging.getLogger(__name__)

GA4_API = "https://analyticsdata.googleapis.com/v1beta"
DATE_RANGE = [{"startDate": "7daysAgo", "endDate": "today"}]


class GoogleAnalyticsClient(ProviderClient):
    provider = "google_analytics"
    api_label = "GA4 API"

    def __init__(self, auth: GoogleServiceAccountAuth, timeout: float = 30.0):
        super().__init__(timeout)
        self.auth = auth

    async def _run_report(self, property_id: str, body: dict) -> dict:
        token = await self.auth.get_access_token(ANALYTICS_SCOPE)
        return await self._request(
            "POST",
            f"{GA4_API}/{property_id}:runReport",
            headers={"Authorization": f"Bearer {token}"},
            json=body,
        )

    async def sync(self, config: dict) -> AnalyticsMetrics:
        property_id = self._require(config, "property_id", "No GA4 property ID configured")

        overview = await self._run_report(property_id, {
            "dateRanges": DATE_RANGE,
            "metrics": [
                {"name": "sessions"},
                {"name": "totalUsers"},
                {"name": "averageSessionDuration"},
                {"name": "bounceRate"},
            ],
        })
        pages = await self._run_report(property_id, {
            "dateRanges": DATE_RANGE,
            "dimensions": [{"name": "pagePath"}],
            "metrics": [{"name": "screenPageViews"}],
            "orderBys": [{"metric": {"metricName": "screenPageViews"}, "desc": True}],
            "limit": 5,
        })
        return self._parse(overview, pages)

    def _parse(self, overview: dict, pages: dict) -> AnalyticsMetrics:
        rows = overview.get("rows") or [{}]
        values = [v.get("value") for v in rows[0].get("metricValues") or []]
        values += [None] * (4 - len(values))

        top_pages = []
        for row in pages.get("rows") or []:
            dims = row.get("dimensionValues") or [{}]
            mets = row.get("metricValues") or [{}]
            top_pages.append(TopPage(
                page=dims[0].get("value") or "/",
                views=safe_int(mets[0].get("value")) or 0,
            ))

        return AnalyticsMetrics(
            sessions=safe_int(values[0]) or 0,
            users=safe_int(values[1]) or 0,
            avg_session_duration=safe_float(values[2]) or 0.0,
            bounce_rate=safe_float(values[3]) or 0.0,
            top_pages=top_pages,
            period="Last 7 days",
        )
