"""Price provider protocol and shared HTTP plumbing."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Protocol

import httpx

from cryptovault.domain.models import PriceQuote
from cryptovault.providers.relay import CorsRelay

logger = logging.getLogger(__name__)


class PriceProvider(Protocol):
    """
    Protocol for upstream price providers.

    fetch() never raises: any network error, timeout, non-2xx status or
    unparseable body yields None so the chain can move on.
    """

    name: str
    ttl_seconds: int

    def fetch(self, symbols: list[str]) -> Optional[dict[str, PriceQuote]]:
        """
        Fetch quotes for normalised symbols.

        Returns dict mapping symbol -> PriceQuote. Missing symbols are omitted.
        """
        ...


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse an upstream number, returning None for junk."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


class HttpPriceProvider:
    """Base for providers that GET a JSON document, optionally via CORS relays."""

    name = "http"

    def __init__(
        self,
        base_url: str,
        ttl_seconds: int,
        timeout_seconds: float = 8.0,
        relays: Optional[list[CorsRelay]] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.ttl_seconds = ttl_seconds
        self._timeout = timeout_seconds
        self._relays = list(relays or [])
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(timeout=self._timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def _get_json(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[Any]:
        """GET base_url + path and decode JSON, or None on any failure."""
        url = str(httpx.URL(f"{self.base_url}{path}", params=params))
        if not self._relays:
            return self._request(url, headers)

        for relay in self._relays:
            payload = self._request(relay.wrap(url), headers)
            if payload is None:
                continue
            unwrapped = relay.unwrap(payload)
            if unwrapped is not None:
                return unwrapped
            logger.warning("%s: relay %s returned an unusable body", self.name, relay.template)
        return None

    def _request(self, url: str, headers: Optional[dict[str, str]]) -> Optional[Any]:
        try:
            resp = self.client.get(url, headers=headers, timeout=self._timeout)
            resp.raise_for_status()
            return resp.json()
        except httpx.TimeoutException:
            logger.warning("%s: request timed out after %ss", self.name, self._timeout)
        except httpx.HTTPStatusError as e:
            logger.warning("%s: upstream returned HTTP %s", self.name, e.response.status_code)
        except httpx.HTTPError as e:
            logger.warning("%s: request failed: %s", self.name, e)
        except ValueError as e:
            logger.warning("%s: unparseable response body: %s", self.name, e)
        return None
