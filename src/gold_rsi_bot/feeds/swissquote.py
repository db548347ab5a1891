from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

import httpx

from gold_rsi_bot.errors import FetchError
from gold_rsi_bot.settings import SWISSQUOTE_XAU_USD_URL

logger = logging.getLogger("gold_rsi_bot.feed")

PRIME_PROFILE = "prime"


class FeedFormatError(ValueError):
    pass


@dataclass(frozen=True)
class Quote:
    spread_profile: str
    bid: float
    ask: float


def _to_quote(raw: Any) -> Quote:
    if not isinstance(raw, dict):
        raise FeedFormatError(f"spread profile is not an object: {raw!r}")
    for key in ("bid", "ask"):
        if isinstance(raw.get(key), bool):
            raise FeedFormatError(f"{key} is not a number: {raw.get(key)!r}")
    return Quote(
        spread_profile=str(raw.get("spreadProfile", "")),
        bid=float(raw.get("bid", 0)),
        ask=float(raw.get("ask", 0)),
    )


def parse_quotes(payload: Any) -> list[Quote]:
    """Flatten the feed payload into quotes, in feed order.

    The feed returns a list of platform entries, each carrying its own
    ``spreadProfilePrices`` list.
    """
    if not isinstance(payload, list) or not payload:
        raise FeedFormatError("Invalid response structure or no data available")
    quotes: list[Quote] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        profiles = item.get("spreadProfilePrices", [])
        if not isinstance(profiles, list):
            continue
        quotes.extend(_to_quote(p) for p in profiles)
    return quotes


def select_prime_bid(quotes: list[Quote]) -> float:
    for quote in quotes:
        if quote.spread_profile.lower() == PRIME_PROFILE:
            if not (math.isfinite(quote.bid) and quote.bid > 0):
                raise FeedFormatError(f"Prime bid is not a positive finite number: {quote.bid}")
            return quote.bid
    raise FeedFormatError("No Prime profile found in the data")


class SwissquoteClient:
    def __init__(
        self,
        *,
        url: str = SWISSQUOTE_XAU_USD_URL,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_quotes(self) -> list[Quote]:
        response = await self._client.get(self._url)
        response.raise_for_status()
        return parse_quotes(response.json())

    async def fetch_prime_bid(self) -> float:
        """Return the bid of the first ``prime`` spread profile.

        Any failure is logged with its cause and surfaced as a generic
        :class:`FetchError`.
        """
        try:
            quotes = await self.fetch_quotes()
            return select_prime_bid(quotes)
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.error("Error fetching gold price: %s: %s", type(e).__name__, e)
            raise FetchError("Failed to fetch gold price data") from e
