"""Google Search Console — clicks, impressions, CTR, position, top queries.

Search data lags a few days, so the 7-day window ends three days ago.
"""

from datetime import date, timedelta
from urllib.parse import quote

from ..schemas.providers import SearchConsoleMetrics, TopQuery
from ..utils import safe_float, safe_int
from .base import ProviderClient
from .google_auth import SEARCH_CONSOLE_SCOPE, GoogleServiceAccountAuth

GSC_API = "https://www.googleapis.com/webmasters/v3"
REPORTING_LAG_DAYS = 3
WINDOW_DAYS = 7


def reporting_window(today: date | None = None) -> tuple[str, str]:
    end = (today or date.today()) - timedelta(days=REPORTING_LAG_DAYS)
    start = end - timedelta(days=WINDOW_DAYS)
    return start.isoformat(), end.isoformat()


class SearchConsoleClient(ProviderClient):
    provider = "google_search_console"
    api_label = "GSC API"

    def __init__(self, auth: GoogleServiceAccountAuth, timeout: float = 30.0):
        super().__init__(timeout)
        self.auth = auth

    async def _query(self, site_url: str, body: dict) -> dict:
        token = await self.auth.get_access_token(SEARCH_CONSOLE_SCOPE)
        return await self._request(
            "POST",
            f"{GSC_API}/sites/{quote(site_url, safe='')}/searchAnalytics/query",
            headers={"Authorization": f"Bearer {token}"},
            json=body,
        )

    async def sync(self, config: dict, today: date | None = None) -> SearchConsoleMetrics:
        site_url = self._require(config, "site_url", "No Search Console site URL configured")
        start, end = reporting_window(today)

        overview = await self._query(site_url, {"startDate": start, "endDate": end, "dimensions": []})
        queries = await self._query(site_url, {
            "startDate": start,
            "endDate": end,
            "dimensions": ["query"],
            "rowLimit": 10,
        })

        totals = (overview.get("rows") or [{}])[0]
        top_queries = [
            TopQuery(
                query=(row.get("keys") or [""])[0],
                clicks=safe_int(row.get("clicks")) or 0,
                impressions=safe_int(row.get("impressions")) or 0,
            )
            for row in queries.get("rows") or []
        ]
        return SearchConsoleMetrics(
            total_clicks=safe_int(totals.get("clicks")) or 0,
            total_impressions=safe_int(totals.get("impressions")) or 0,
            avg_ctr=safe_float(totals.get("ctr")) or 0.0,
            avg_position=safe_float(totals.get("position")) or 0.0,
            top_queries=top_queries,
            period=f"{start} to {end}",
        )
