"""Google service-account auth — signed JWT assertion exchanged for a bearer token.

One instance is shared by the three Google providers for a single sync run,
so the token for each scope is fetched at most once per run.
"""

import json
import logging
import time

import httpx
import jwt

from .base import ConfigurationError, ExternalAPIError, ProviderError

log = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

ANALYTICS_SCOPE = "https://www.googleapis.com/auth/analytics.readonly"
SEARCH_CONSOLE_SCOPE = "https://www.googleapis.com/auth/webmasters.readonly"
BUSINESS_SCOPE = "https://www.googleapis.com/auth/business.manage"

TOKEN_LIFETIME = 3600
EXPIRY_MARGIN = 60


class GoogleServiceAccountAuth:
    def __init__(self, service_account_json: str, timeout: float = 30.0):
        self._raw = service_account_json
        self.timeout = timeout
        self._tokens: dict[str, tuple[str, float]] = {}  # scope -> (token, expires_at)

    def _credentials(self) -> dict:
        if not self._raw:
            raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_JSON is not configured")
        try:
            sa = json.loads(self._raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON") from e
        if not sa.get("client_email") or not sa.get("private_key"):
            raise ConfigurationError("Service account JSON is missing client_email or private_key")
        return sa

    def build_assertion(self, scope: str, now: int | None = None) -> str:
        """RS256-signed JWT for the token endpoint."""
        sa = self._credentials()
        now = int(time.time()) if now is None else now
        payload = {
            "iss": sa["client_email"],
            "scope": scope,
            "aud": TOKEN_URL,
            "iat": now,
            "exp": now + TOKEN_LIFETIME,
        }
        private_key = sa["private_key"].replace("\\n", "\n")
        try:
            return jwt.encode(payload, private_key, algorithm="RS256")
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Service account private key is unusable: {e}") from e

    async def get_access_token(self, scope: str) -> str:
        cached = self._tokens.get(scope)
        if cached and cached[1] - EXPIRY_MARGIN > time.time():
            return cached[0]

        from ..http_client import http

        assertion = self.build_assertion(scope)
        try:
            r = await http.post(
                TOKEN_URL,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Google OAuth request failed: {e}") from e
        if not r.is_success:
            raise ExternalAPIError("Google OAuth error", r.status_code, r.text)

        data = r.json()
        token = data["access_token"]
        self._tokens[scope] = (token, time.time() + int(data.get("expires_in", TOKEN_LIFETIME)))
        log.debug(f"Google access token issued for scope {scope.rsplit('/', 1)[-1]}")
        return token
