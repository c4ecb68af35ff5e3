"""Pipeline tests for ValueOracle with in-memory sources and ledger."""

import pytest

from value_oracle.src.exceptions import (
    ConfigurationMissing,
    ConfirmationFailed,
    EncodingOverflow,
    NoSourcesAvailable,
)
from value_oracle.src.fetchers import (
    BaseFetcher,
    CoinGeckoFetcher,
    CoinMarketCapFetcher,
    FetcherHTTPError,
)
from value_oracle.src.OracleConfig import OracleConfig, OracleMode
from value_oracle.src.ValueOracle import ValueOracle
from value_oracle.src.ValueSource import PriceSource, RandomValueSource

ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
SIGNER = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


def price_config(**overrides) -> OracleConfig:
    settings = {
        "mode": OracleMode.PRICE,
        "private_key": SIGNER,
        "contract_address": ADDRESS,
        "pair": "btc/usd",
        "api_keys": {"coinmarketcap": "k"},
    }
    settings.update(overrides)
    return OracleConfig(**settings)


def stub_source(fetcher_cls, value=None, error=None) -> PriceSource:
    """PriceSource whose fetcher returns a value or raises, without HTTP."""

    class Stub(fetcher_cls):
        async def fetch(self, base: str, quote: str) -> float:
            if error is not None:
                raise error
            return value

    return PriceSource(Stub(api_key="k"), "btc", "usd")


class TestBuildSources:
    """Test source construction from configuration."""

    def test_random_mode(self) -> None:
        """RANDOM mode uses a single generator with the configured range."""
        oracle = ValueOracle(OracleConfig(min_value=5, max_value=10))
        assert len(oracle.sources) == 1
        source = oracle.sources[0]
        assert isinstance(source, RandomValueSource)
        assert (source.min_value, source.max_value) == (5, 10)

    def test_price_mode(self) -> None:
        """PRICE mode builds one PriceSource per configured source."""
        oracle = ValueOracle(
            price_config(sources=("coinmarketcap", "coingecko"), fetch_timeout=4.0)
        )
        assert [s.name for s in oracle.sources] == ["coinmarketcap", "coingecko"]
        assert all(s.fetcher.timeout == 4.0 for s in oracle.sources)
        assert oracle.sources[0].fetcher.api_key == "k"
        assert oracle.sources[1].fetcher.api_key is None

    def test_unsupported_pair_skipped(self) -> None:
        """Sources that do not list the pair are left out."""
        oracle = ValueOracle(price_config(pair="rose/usd", sources=("kraken", "coingecko")))
        assert [s.name for s in oracle.sources] == ["coingecko"]

    def test_unknown_source(self) -> None:
        """Unknown source names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown fetcher"):
            ValueOracle(price_config(sources=("nope",)))


class TestRandomRun:
    """Test the random value pipeline."""

    @pytest.mark.asyncio
    async def test_random_value_committed(self, client_factory, ledger_client) -> None:
        """The generated integer is written unscaled via setValue."""
        oracle = ValueOracle(
            OracleConfig(private_key=SIGNER, contract_address=ADDRESS),
            client_factory=client_factory,
            sources=[RandomValueSource(777, 777)],
        )
        record = await oracle.run()

        assert record.value == 777
        assert record.value_before == 42
        assert record.value_after == 777
        assert ("submit", "setValue", 777) in ledger_client.calls
        assert client_factory.received == [(ADDRESS, SIGNER)]

    @pytest.mark.asyncio
    async def test_default_range(self, client_factory, ledger_client) -> None:
        """Without overrides the value lies in [1, 1_000_000]."""
        oracle = ValueOracle(
            OracleConfig(private_key=SIGNER, contract_address=ADDRESS),
            client_factory=client_factory,
        )
        record = await oracle.run()
        assert 1 <= record.value <= 1_000_000

    @pytest.mark.asyncio
    async def test_missing_signer(self, client_factory, ledger_client) -> None:
        """Missing credentials abort before generating or submitting."""
        oracle = ValueOracle(
            OracleConfig(contract_address=ADDRESS), client_factory=client_factory
        )
        with pytest.raises(ConfigurationMissing):
            await oracle.run()
        assert ledger_client.calls == []


class TestPriceRun:
    """Test the price pipeline scenarios."""

    @pytest.mark.asyncio
    async def test_single_source(self, client_factory, ledger_client) -> None:
        """One source at 65000.12 commits 6500012000000 via setPrice."""
        oracle = ValueOracle(
            price_config(),
            client_factory=client_factory,
            sources=[stub_source(CoinGeckoFetcher, 65000.12)],
        )
        record = await oracle.run()

        assert record.value == 6500012000000
        assert ("submit", "setPrice", 6500012000000) in ledger_client.calls
        assert ("read", "getPrice") in ledger_client.calls

    @pytest.mark.asyncio
    async def test_two_sources_averaged(self, client_factory) -> None:
        """65010 and 64990 average to 65000."""
        oracle = ValueOracle(
            price_config(),
            client_factory=client_factory,
            sources=[
                stub_source(CoinMarketCapFetcher, 65010.00),
                stub_source(CoinGeckoFetcher, 64990.00),
            ],
        )
        record = await oracle.run()
        assert record.value == 6500000000000

    @pytest.mark.asyncio
    async def test_failing_source_absorbed(self, client_factory) -> None:
        """A failing CMC leaves CoinGecko's 64990 as the value."""
        oracle = ValueOracle(
            price_config(),
            client_factory=client_factory,
            sources=[
                stub_source(CoinMarketCapFetcher, error=FetcherHTTPError(500, "down")),
                stub_source(CoinGeckoFetcher, 64990.00),
            ],
        )
        record = await oracle.run()
        assert record.value == 6499000000000

    @pytest.mark.asyncio
    async def test_all_sources_fail(self, client_factory, ledger_client) -> None:
        """All sources failing aborts without a transaction."""
        oracle = ValueOracle(
            price_config(),
            client_factory=client_factory,
            sources=[
                stub_source(CoinMarketCapFetcher, error=FetcherHTTPError(500, "down")),
                stub_source(CoinGeckoFetcher, error=FetcherHTTPError(429, "slow down")),
            ],
        )
        with pytest.raises(NoSourcesAvailable):
            await oracle.run()
        assert "submit" not in ledger_client.call_kinds()

    @pytest.mark.asyncio
    async def test_confirmation_timeout(self, client_factory, ledger_client) -> None:
        """Confirmation timeout aborts and the getter is not called again."""
        ledger_client.fail_on = "confirm"
        oracle = ValueOracle(
            price_config(),
            client_factory=client_factory,
            sources=[stub_source(CoinGeckoFetcher, 65000.12)],
        )
        with pytest.raises(ConfirmationFailed):
            await oracle.run()
        assert ledger_client.call_kinds() == ["read", "submit", "confirm"]

    @pytest.mark.asyncio
    async def test_overflow_not_submitted(self, client_factory, ledger_client) -> None:
        """A value too large for uint256 is never submitted."""
        oracle = ValueOracle(
            price_config(),
            client_factory=client_factory,
            sources=[stub_source(CoinGeckoFetcher, 1e75)],
        )
        with pytest.raises(EncodingOverflow):
            await oracle.run()
        assert ledger_client.calls == []

    @pytest.mark.asyncio
    async def test_shared_client_closed(self, client_factory) -> None:
        """The shared HTTP client is released after fetching."""
        BaseFetcher.get_shared_client()
        oracle = ValueOracle(
            price_config(),
            client_factory=client_factory,
            sources=[stub_source(CoinGeckoFetcher, 1.0)],
        )
        await oracle.run()
        assert BaseFetcher._shared_client is None
