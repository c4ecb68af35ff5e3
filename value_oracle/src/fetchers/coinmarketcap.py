"""CoinMarketCap latest quotes API (key required, 333 calls/day on the free plan).

GET /v2/cryptocurrency/quotes/latest?symbol=BTC&convert=USD
-> {"data": {"BTC": [{"quote": {"USD": {"price": 65010.0}}}]}}
"""

from .base import BaseFetcher, FetcherParseError, ProviderRequest, register_fetcher

API = "https://pro-api.coinmarketcap.com/v2/cryptocurrency/quotes/latest"


@register_fetcher
class CoinMarketCapFetcher(BaseFetcher):
    """CoinMarketCap aggregated market price."""

    name = "coinmarketcap"
    requires_api_key = True

    def request(self, base: str, quote: str) -> ProviderRequest:
        return ProviderRequest(
            API,
            params={"symbol": base.upper(), "convert": quote.upper()},
            headers={"X-CMC_PRO_API_KEY": self.api_key},
        )

    def extract(self, payload, base, quote):
        symbol, currency = base.upper(), quote.upper()
        try:
            matches = payload["data"][symbol]
            # Several coins can share a ticker; the first is the ranked one.
            coin = matches[0] if isinstance(matches, list) else matches
            return coin["quote"][currency]["price"]
        except (KeyError, IndexError, TypeError) as e:
            raise FetcherParseError(f"No {currency} quote for {symbol}") from e
