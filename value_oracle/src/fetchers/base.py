"""Price provider plumbing shared by every fetcher.

A fetcher describes one provider in two steps: ``request()`` says where to
ask for a pair, ``extract()`` digs the raw price out of the decoded JSON.
``BaseFetcher.fetch()`` runs both around a single GET on a process-wide
httpx client and validates the result, so a provider module stays a few
lines long:

.. code-block:: python

    @register_fetcher
    class ExampleFetcher(BaseFetcher):
        name = "example"

        def request(self, base, quote):
            return ProviderRequest(f"https://api.example.com/{base}/{quote}")

        def extract(self, payload, base, quote):
            return payload["price"]

Every failure surfaces as a FetcherError (a SourceFetchFailed), never as a
sentinel value.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, ClassVar, NamedTuple

import httpx

from ..exceptions import SourceFetchFailed

logger = logging.getLogger(__name__)

# Longest response excerpt carried in error messages.
EXCERPT_LENGTH = 200


class FetcherError(SourceFetchFailed):
    """A provider could not deliver a price."""


class FetcherConfigError(FetcherError):
    """The fetcher is not usable as configured (e.g. missing API key)."""


class FetcherParseError(FetcherError):
    """The provider answered, but not with a usable price."""


class FetcherHTTPError(FetcherError):
    """The provider answered with a non-2xx status.

    :ivar status_code: HTTP status of the response.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


class ProviderRequest(NamedTuple):
    """Where and how to ask a provider for one pair."""

    url: str
    params: dict[str, str] | None = None
    headers: dict[str, str] | None = None


class BaseFetcher(ABC):
    """One HTTP price provider.

    :cvar name: Registry name, also used as the source name in results.
    :cvar requires_api_key: Whether the provider rejects anonymous calls.
    :cvar unlisted_bases: Base symbols the provider does not quote.
    :ivar api_key: API key, if configured.
    :ivar timeout: Per-request timeout in seconds.
    """

    name: ClassVar[str] = ""
    requires_api_key: ClassVar[bool] = False
    unlisted_bases: ClassVar[frozenset[str]] = frozenset()

    DEFAULT_TIMEOUT = 10.0

    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    def __init__(self, api_key: str | None = None, timeout: float | None = None):
        self.api_key = api_key
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    def __repr__(self) -> str:
        return f"{type(self).__name__}(timeout={self.timeout})"

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Return the process-wide HTTP client, opening a new one if needed.

        The client lives on BaseFetcher itself, so all subclasses share one
        connection pool.

        :returns: Open httpx.AsyncClient.
        """
        client = BaseFetcher._shared_client
        if client is None or client.is_closed:
            client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                follow_redirects=True,
            )
            BaseFetcher._shared_client = client
        return client

    @classmethod
    def set_shared_client(cls, client: httpx.AsyncClient | None) -> None:
        """Install ``client`` as the shared client (None forgets the current one).

        Tests use this to route requests through ``httpx.MockTransport``.
        """
        BaseFetcher._shared_client = client

    @classmethod
    async def close_shared_client(cls) -> None:
        """Close and forget the shared client, if one is open."""
        client, BaseFetcher._shared_client = BaseFetcher._shared_client, None
        if client is not None and not client.is_closed:
            await client.aclose()

    @abstractmethod
    def request(self, base: str, quote: str) -> ProviderRequest:
        """Describe the GET request for a lowercase pair.

        :raises FetcherError: If the pair cannot be requested at all.
        """

    @abstractmethod
    def extract(self, payload: Any, base: str, quote: str) -> Any:
        """Pick the raw price out of a decoded response.

        :raises FetcherError: If the payload has no price for the pair.
        """

    def supports_pair(self, base: str, quote: str) -> bool:
        """Whether the provider can quote ``base`` at all."""
        return base.lower() not in self.unlisted_bases

    async def fetch(self, base: str, quote: str) -> float:
        """Fetch the current price of ``base`` in ``quote``.

        :param base: Base currency symbol (e.g. "btc").
        :param quote: Quote currency symbol (e.g. "usd").
        :returns: Positive, finite price.
        :raises FetcherError: If no usable price could be obtained.
        """
        if self.requires_api_key and not self.has_api_key:
            raise FetcherConfigError("API key required but not provided")

        base, quote = base.lower(), quote.lower()
        payload = await self._get(self.request(base, quote))
        price = self._parse_price(self.extract(payload, base, quote))
        logger.debug(f"[{self.name}] {base}/{quote} = {price}")
        return price

    @staticmethod
    def _parse_price(raw: Any) -> float:
        """Turn a JSON price (number or numeric string) into a float.

        :raises FetcherParseError: Unless the price is a positive finite number.
        """
        if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
            raise FetcherParseError(f"Price is not a number: {raw!r}")
        try:
            price = float(raw)
        except ValueError as e:
            raise FetcherParseError(f"Price is not a number: {raw!r}") from e
        if not (math.isfinite(price) and price > 0):
            raise FetcherParseError(f"Price is not positive: {raw!r}")
        return price

    async def _get(self, req: ProviderRequest) -> Any:
        """Send ``req`` on the shared client and decode the JSON body.

        :raises FetcherError: On timeouts and transport errors.
        :raises FetcherHTTPError: On a non-2xx status.
        :raises FetcherParseError: If the body is not JSON.
        """
        client = self.get_shared_client()
        try:
            response = await client.get(
                req.url, params=req.params, headers=req.headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise FetcherError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise FetcherError(f"Request failed: {e}") from e

        excerpt = response.text[:EXCERPT_LENGTH]
        if not response.is_success:
            logger.debug(f"[{self.name}] GET {req.url} -> {response.status_code}: {excerpt}")
            raise FetcherHTTPError(response.status_code, excerpt)

        try:
            return response.json()
        except ValueError as e:
            raise FetcherParseError(f"Malformed JSON: {excerpt}") from e


FETCHER_REGISTRY: dict[str, type[BaseFetcher]] = {}


def register_fetcher(cls: type[BaseFetcher]) -> type[BaseFetcher]:
    """Class decorator adding a fetcher to FETCHER_REGISTRY under its name.

    :raises ValueError: If the class has no name.
    """
    if not cls.name:
        raise ValueError(f"{cls.__name__} needs a non-empty 'name'")
    FETCHER_REGISTRY[cls.name] = cls
    return cls


def get_fetcher(
    name: str, api_key: str | None = None, timeout: float | None = None
) -> BaseFetcher:
    """Instantiate a registered fetcher.

    :param name: Registry name (e.g. "coingecko").
    :param api_key: Optional API key.
    :param timeout: Optional request timeout in seconds.
    :returns: New fetcher.
    :raises ValueError: If no fetcher is registered under ``name``.
    """
    try:
        fetcher_cls = FETCHER_REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown fetcher '{name}'. Available: {', '.join(get_available_fetchers())}"
        ) from None
    return fetcher_cls(api_key=api_key, timeout=timeout)


def get_available_fetchers() -> list[str]:
    """Registered fetcher names, sorted."""
    return sorted(FETCHER_REGISTRY)
