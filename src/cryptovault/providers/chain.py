"""Ordered provider fallback chain."""

import logging
from dataclasses import dataclass
from typing import Optional

from cryptovault.domain.models import PriceQuote
from cryptovault.providers.base import PriceProvider

logger = logging.getLogger(__name__)


@dataclass
class ChainResult:
    """Quotes from the first provider that produced any."""

    provider: str
    quotes: dict[str, PriceQuote]
    ttl_seconds: int


class ProviderChain:
    """Tries each provider in order until one returns a non-empty result."""

    def __init__(self, name: str, providers: list[PriceProvider]):
        self.name = name
        self.providers = list(providers)

    def fetch(self, symbols: list[str]) -> Optional[ChainResult]:
        for provider in self.providers:
            try:
                quotes = provider.fetch(symbols)
            except Exception:
                logger.exception("%s: provider %s raised", self.name, provider.name)
                quotes = None

            if quotes:
                logger.debug("%s: %d quotes from %s", self.name, len(quotes), provider.name)
                return ChainResult(
                    provider=provider.name,
                    quotes=quotes,
                    ttl_seconds=provider.ttl_seconds,
                )
            logger.info("%s: provider %s returned nothing, trying next", self.name, provider.name)

        logger.warning("%s: all %d providers failed for %s", self.name, len(self.providers), symbols)
        return None
