"""Coinbase Exchange public ticker: GET /products/BTC-USD/ticker -> {"price": "..."}."""

from .base import BaseFetcher, FetcherParseError, ProviderRequest, register_fetcher

API = "https://api.exchange.coinbase.com"


@register_fetcher
class CoinbaseFetcher(BaseFetcher):
    name = "coinbase"

    def request(self, base: str, quote: str) -> ProviderRequest:
        return ProviderRequest(f"{API}/products/{base.upper()}-{quote.upper()}/ticker")

    def extract(self, payload, base, quote):
        if not isinstance(payload, dict) or "price" not in payload:
            raise FetcherParseError(f"Ticker for {base}/{quote} has no price")
        return payload["price"]
