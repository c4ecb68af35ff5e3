"""OracleConfig: Settings for one oracle run, built once at startup.

Core modules never read the environment; ``main()`` resolves CLI flags and
environment variables into an OracleConfig and hands it to ValueOracle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .FixedPointEncoder import DEFAULT_DECIMALS
from .LedgerUpdater import DEFAULT_CONFIRM_TIMEOUT
from .ValueSource import DEFAULT_MAX_VALUE, DEFAULT_MIN_VALUE


class OracleMode(str, Enum):
    """What the oracle writes on-chain."""

    RANDOM = "random"
    PRICE = "price"


# Contract function names used when none are configured.
DEFAULT_FUNCTIONS: dict[OracleMode, tuple[str, str]] = {
    OracleMode.RANDOM: ("getValue", "setValue"),
    OracleMode.PRICE: ("getPrice", "setPrice"),
}

DEFAULT_NETWORK = "localhost"
DEFAULT_PAIR = "btc/usd"
DEFAULT_SOURCES = ("coingecko", "coinmarketcap")
DEFAULT_FETCH_TIMEOUT = 10.0


def parse_pair(pair_str: str) -> tuple[str, str]:
    """Parse a pair string in format "base/quote".

    :param pair_str: Pair string like "btc/usd" or "eth/usd".
    :returns: Tuple of lowercase (base, quote).
    :raises ValueError: If pair string format is invalid.

    .. code-block:: python

        >>> parse_pair("ETH/USD")
        ('eth', 'usd')
    """
    parts = [p.strip() for p in pair_str.lower().split("/")]
    if len(parts) != 2 or not all(parts):
        raise ValueError(
            f"Invalid pair format '{pair_str}'. Expected 'base/quote' (e.g., 'btc/usd')"
        )
    return parts[0], parts[1]


@dataclass(frozen=True)
class OracleConfig:
    """Immutable configuration of an oracle run.

    :ivar mode: RANDOM writes a random integer, PRICE an aggregated price.
    :ivar network: Network name or RPC URL.
    :ivar rpc_url: Optional RPC URL overriding the network default.
    :ivar private_key: Signer private key (never shown in repr).
    :ivar contract_address: Target contract address.
    :ivar getter: Getter function name, or None for the mode default.
    :ivar setter: Setter function name, or None for the mode default.
    :ivar pair: Trading pair for PRICE mode.
    :ivar sources: Price source names for PRICE mode, in query order.
    :ivar api_keys: Dict mapping source names to API keys (never shown in repr).
    :ivar decimals: Fixed-point decimals for PRICE mode.
    :ivar min_value: Inclusive lower bound for RANDOM mode.
    :ivar max_value: Inclusive upper bound for RANDOM mode.
    :ivar fetch_timeout: Per-source fetch timeout in seconds.
    :ivar confirm_timeout: Transaction receipt timeout in seconds.
    :ivar verify_readback: Fail if the stored value differs after the update.
    """

    mode: OracleMode = OracleMode.RANDOM
    network: str = DEFAULT_NETWORK
    rpc_url: str | None = None
    private_key: str | None = field(default=None, repr=False)
    contract_address: str | None = None
    getter: str | None = None
    setter: str | None = None
    pair: str = DEFAULT_PAIR
    sources: tuple[str, ...] = DEFAULT_SOURCES
    api_keys: dict[str, str] = field(default_factory=dict, repr=False)
    decimals: int = DEFAULT_DECIMALS
    min_value: int = DEFAULT_MIN_VALUE
    max_value: int = DEFAULT_MAX_VALUE
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT
    verify_readback: bool = False

    def __post_init__(self) -> None:
        """Validate value ranges.

        Missing signer or address are not checked here: the ledger preflight
        reports them as ConfigurationMissing.

        :raises ValueError: If a setting is out of range.
        """
        object.__setattr__(self, "mode", OracleMode(self.mode))
        # Each source is queried at most once per run
        object.__setattr__(self, "sources", tuple(dict.fromkeys(self.sources)))

        if self.decimals < 0:
            raise ValueError("decimals must be non-negative")
        if self.min_value < 0:
            raise ValueError("min_value must be non-negative")
        if self.min_value > self.max_value:
            raise ValueError("min_value must not exceed max_value")
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        if self.confirm_timeout <= 0:
            raise ValueError("confirm_timeout must be positive")
        if self.mode is OracleMode.PRICE:
            parse_pair(self.pair)
            if not self.sources:
                raise ValueError("At least one source must be specified")

    @property
    def getter_name(self) -> str:
        """Getter function name, defaulting per mode."""
        return self.getter or DEFAULT_FUNCTIONS[self.mode][0]

    @property
    def setter_name(self) -> str:
        """Setter function name, defaulting per mode."""
        return self.setter or DEFAULT_FUNCTIONS[self.mode][1]

    @property
    def base(self) -> str:
        return parse_pair(self.pair)[0]

    @property
    def quote(self) -> str:
        return parse_pair(self.pair)[1]
