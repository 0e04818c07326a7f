"""Provider client base — shared HTTP handling and the provider error types."""

import logging
from abc import ABC, abstractmethod

import httpx

log = logging.getLogger(__name__)


class ProviderError(Exception):
    """Anything a provider sync can raise. Caught per provider by the orchestrator."""


class ConfigurationError(ProviderError):
    """Missing or malformed credentials / required config field."""


class ExternalAPIError(ProviderError):
    """Upstream API answered with a non-2xx status."""

    def __init__(self, label: str, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{label} {status_code}: {body[:500]}")


class ProviderClient(ABC):
    """One third-party data source. `sync(config)` returns a normalized output."""

    provider = ""
    api_label = ""  # prefix used in ExternalAPIError messages

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    @abstractmethod
    async def sync(self, config: dict):
        pass

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        from ..http_client import http

        try:
            r = await http.request(method, url, timeout=self.timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.api_label} request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.api_label} request failed: {e}") from e

        if not r.is_success:
            raise ExternalAPIError(self.api_label, r.status_code, r.text)
        try:
            data = r.json()
        except ValueError as e:
            raise ProviderError(f"{self.api_label} returned a non-JSON body: {r.text[:200]}") from e
        if not isinstance(data, dict):
            raise ProviderError(f"{self.api_label} returned unexpected payload type {type(data).__name__}")
        return data

    @staticmethod
    def _require(config: dict, key: str, message: str) -> str:
        value = (config.get(key) or "").strip()
        if not value:
            raise ConfigurationError(message)
        return value
