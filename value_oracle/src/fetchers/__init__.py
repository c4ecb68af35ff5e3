"""HTTP price providers, looked up by name.

Importing this package registers every bundled provider::

    fetcher = get_fetcher("coinmarketcap", api_key="...")
    price = await fetcher.fetch("btc", "usd")
"""

from .base import (
    FETCHER_REGISTRY,
    BaseFetcher,
    FetcherConfigError,
    FetcherError,
    FetcherHTTPError,
    FetcherParseError,
    ProviderRequest,
    get_available_fetchers,
    get_fetcher,
    register_fetcher,
)
from .bitstamp import BitstampFetcher
from .coinbase import CoinbaseFetcher
from .coingecko import CoinGeckoFetcher
from .coinmarketcap import CoinMarketCapFetcher
from .kraken import KrakenFetcher
