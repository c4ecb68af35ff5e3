"""Bitstamp public ticker: GET /api/v2/ticker/btcusd/ -> {"last": "..."}."""

from .base import BaseFetcher, FetcherParseError, ProviderRequest, register_fetcher

API = "https://www.bitstamp.net/api/v2/ticker"


@register_fetcher
class BitstampFetcher(BaseFetcher):
    name = "bitstamp"
    unlisted_bases = frozenset({"rose"})

    def request(self, base: str, quote: str) -> ProviderRequest:
        return ProviderRequest(f"{API}/{base}{quote}/")

    def extract(self, payload, base, quote):
        try:
            return payload["last"]
        except (KeyError, TypeError) as e:
            raise FetcherParseError(f"Ticker for {base}{quote} has no last price") from e
