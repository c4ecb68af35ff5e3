"""Unit tests for OracleConfig."""

import dataclasses

import pytest

from value_oracle.src.OracleConfig import OracleConfig, OracleMode, parse_pair


class TestParsePair:
    """Test trading pair parsing."""

    def test_valid(self) -> None:
        """Pairs are split and lowercased."""
        assert parse_pair("BTC/USD") == ("btc", "usd")
        assert parse_pair(" eth / usd ") == ("eth", "usd")

    @pytest.mark.parametrize("pair", ["btcusd", "btc/usd/eur", "/usd", "btc/"])
    def test_invalid(self, pair) -> None:
        """Malformed pairs raise ValueError."""
        with pytest.raises(ValueError, match="Invalid pair format"):
            parse_pair(pair)


class TestOracleConfigDefaults:
    """Test default configuration."""

    def test_defaults(self) -> None:
        """Defaults describe a random-value run on localhost."""
        config = OracleConfig()
        assert config.mode is OracleMode.RANDOM
        assert config.network == "localhost"
        assert config.min_value == 1
        assert config.max_value == 1_000_000
        assert config.decimals == 8
        assert config.sources == ("coingecko", "coinmarketcap")
        assert config.verify_readback is False

    def test_function_names_per_mode(self) -> None:
        """Getter and setter default per mode."""
        assert OracleConfig().getter_name == "getValue"
        assert OracleConfig().setter_name == "setValue"
        price = OracleConfig(mode=OracleMode.PRICE)
        assert price.getter_name == "getPrice"
        assert price.setter_name == "setPrice"

    def test_function_names_override(self) -> None:
        """Configured names win over the defaults."""
        config = OracleConfig(getter="latest", setter="store")
        assert (config.getter_name, config.setter_name) == ("latest", "store")

    def test_mode_from_string(self) -> None:
        """Mode strings are coerced to OracleMode."""
        assert OracleConfig(mode="price").mode is OracleMode.PRICE

    def test_pair_parts(self) -> None:
        """base and quote come from the pair."""
        config = OracleConfig(mode="price", pair="ETH/USD")
        assert (config.base, config.quote) == ("eth", "usd")

    def test_frozen(self) -> None:
        """Configuration cannot be mutated after construction."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            OracleConfig().decimals = 2

    def test_secrets_not_in_repr(self) -> None:
        """Private key and API keys never appear in repr."""
        config = OracleConfig(private_key="0xsecret", api_keys={"coinmarketcap": "k3y"})
        assert "0xsecret" not in repr(config)
        assert "k3y" not in repr(config)


class TestOracleConfigValidation:
    """Test range validation."""

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"decimals": -1}, "decimals must be non-negative"),
            ({"min_value": -1}, "min_value must be non-negative"),
            ({"min_value": 10, "max_value": 9}, "min_value must not exceed max_value"),
            ({"fetch_timeout": 0}, "fetch_timeout must be positive"),
            ({"confirm_timeout": -1}, "confirm_timeout must be positive"),
            ({"mode": "price", "pair": "btcusd"}, "Invalid pair format"),
            ({"mode": "price", "sources": ()}, "At least one source"),
        ],
    )
    def test_invalid(self, kwargs, message) -> None:
        """Out-of-range settings raise ValueError."""
        with pytest.raises(ValueError, match=message):
            OracleConfig(**kwargs)

    def test_unknown_mode(self) -> None:
        """Unknown modes raise ValueError."""
        with pytest.raises(ValueError):
            OracleConfig(mode="counter")

    def test_missing_credentials_allowed(self) -> None:
        """Signer and address are checked by the ledger preflight, not here."""
        config = OracleConfig(private_key=None, contract_address=None)
        assert config.private_key is None

    def test_repeated_sources_kept_once(self) -> None:
        """A source listed twice is queried once, in first-seen order."""
        config = OracleConfig(mode="price", sources=["coinbase", "kraken", "coinbase"])
        assert config.sources == ("coinbase", "kraken")
