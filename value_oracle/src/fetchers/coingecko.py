"""CoinGecko simple price API.

GET {host}/api/v3/simple/price?ids={coin id}&vs_currencies={quote}
-> {"bitcoin": {"usd": 65000.12}}

Works without a key (about 30 calls/min). A key prefixed with "demo:" is
sent to the public host as a demo key; any other key selects the pro host.
"""

from .base import BaseFetcher, FetcherParseError, ProviderRequest, register_fetcher

PUBLIC_API = "https://api.coingecko.com/api/v3"
PRO_API = "https://pro-api.coingecko.com/api/v3"
DEMO_PREFIX = "demo:"

# CoinGecko addresses coins by id, not by ticker symbol.
COINGECKO_IDS = {
    "btc": "bitcoin",
    "eth": "ethereum",
    "rose": "oasis-network",
    "sol": "solana",
    "usdc": "usd-coin",
    "usdt": "tether",
    "link": "chainlink",
}


@register_fetcher
class CoinGeckoFetcher(BaseFetcher):
    """CoinGecko aggregated market price."""

    name = "coingecko"

    def __init__(self, api_key: str | None = None, timeout: float | None = None):
        self.demo = bool(api_key) and api_key.lower().startswith(DEMO_PREFIX)
        if self.demo:
            api_key = api_key[len(DEMO_PREFIX):]
        super().__init__(api_key=api_key, timeout=timeout)

    def request(self, base: str, quote: str) -> ProviderRequest:
        coin_id = COINGECKO_IDS.get(base)
        if coin_id is None:
            raise FetcherParseError(f"Unknown coin: {base}")

        host, headers = PUBLIC_API, None
        if self.has_api_key:
            tier = "demo" if self.demo else "pro"
            headers = {f"x-cg-{tier}-api-key": self.api_key}
            if not self.demo:
                host = PRO_API

        return ProviderRequest(
            f"{host}/simple/price",
            params={"ids": coin_id, "vs_currencies": quote},
            headers=headers,
        )

    def extract(self, payload, base, quote):
        coin_id = COINGECKO_IDS[base]
        try:
            return payload[coin_id][quote]
        except (KeyError, TypeError) as e:
            raise FetcherParseError(f"{quote} price not available for {coin_id}") from e

    def supports_pair(self, base: str, quote: str) -> bool:
        return base.lower() in COINGECKO_IDS
