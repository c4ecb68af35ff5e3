"""Kraken public ticker.

GET /0/public/Ticker?pair=XBTUSD
-> {"error": [], "result": {"XXBTZUSD": {"c": ["64999.9", "0.01"], ...}}}

Kraken reports API errors in the body with a 200 status. It does not list ROSE.
"""

from .base import BaseFetcher, FetcherError, FetcherParseError, ProviderRequest, register_fetcher

API = "https://api.kraken.com/0/public/Ticker"

# Kraken's own asset codes where they differ from the usual ticker.
KRAKEN_ASSETS = {"btc": "XBT"}


@register_fetcher
class KrakenFetcher(BaseFetcher):
    """Kraken last trade price."""

    name = "kraken"
    unlisted_bases = frozenset({"rose"})

    def request(self, base: str, quote: str) -> ProviderRequest:
        asset = KRAKEN_ASSETS.get(base, base.upper())
        return ProviderRequest(API, params={"pair": f"{asset}{quote.upper()}"})

    def extract(self, payload, base, quote):
        if not isinstance(payload, dict):
            raise FetcherParseError(f"Unexpected ticker payload for {base}/{quote}")
        if payload.get("error"):
            raise FetcherError(f"Kraken error for {base}/{quote}: {payload['error']}")

        tickers = payload.get("result") or {}
        try:
            # Result is keyed by Kraken's pair name (XXBTZUSD), not the query.
            # "c" holds the last closed trade as [price, lot volume].
            return next(iter(tickers.values()))["c"][0]
        except (StopIteration, KeyError, IndexError, TypeError) as e:
            raise FetcherParseError(f"No last trade for {base}/{quote}") from e
