"""Asset symbol normalisation."""

import re
from typing import Optional

_QUOTE_SUFFIX = re.compile(r"/(USDT|USD)$")

# Quote-stable assets priced at 1.0 without any upstream call
STABLECOINS = frozenset({"USDT", "USDC", "DAI", "BUSD", "TUSD", "FDUSD"})


def normalize_symbol(symbol: Optional[str]) -> str:
    """Upper-case, strip whitespace and drop a trailing /USDT or /USD."""
    if not symbol:
        return ""
    return _QUOTE_SUFFIX.sub("", symbol.strip().upper())


def normalize_symbols(symbols: list[str]) -> list[str]:
    """Normalise and de-duplicate symbols, keeping first-seen order."""
    seen: dict[str, None] = {}
    for symbol in symbols:
        key = normalize_symbol(symbol)
        if key:
            seen.setdefault(key, None)
    return list(seen)


def is_stablecoin(symbol: str) -> bool:
    return normalize_symbol(symbol) in STABLECOINS
