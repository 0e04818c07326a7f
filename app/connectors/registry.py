"""Provider registry — provider id → client instance for one sync run."""

from ..config import Settings
from .base import ProviderClient
from .clickup import ClickUpClient
from .google_analytics import GoogleAnalyticsClient
from .google_auth import GoogleServiceAccountAuth
from .google_business import GoogleBusinessClient
from .google_search_console import SearchConsoleClient
from .yelp import YelpClient


def build_registry(settings: Settings) -> dict[str, ProviderClient]:
    """Fresh clients for a run. The Google clients share one auth (and its token cache)."""
    timeout = settings.provider_timeout_seconds
    google = GoogleServiceAccountAuth(settings.google_service_account_json, timeout=timeout)
    clients = [
        ClickUpClient(timeout=timeout),
        GoogleAnalyticsClient(google, timeout=timeout),
        GoogleBusinessClient(google, timeout=timeout),
        SearchConsoleClient(google, timeout=timeout),
        YelpClient(settings.yelp_api_key, timeout=timeout),
    ]
    return {c.provider: c for c in clients}
