"""ValueOracle: One-shot orchestrator for on-chain value updates.

This module acquires a value, encodes it for the contract and commits it
on-chain, once per invocation.

Architecture:
    - Ledger preflight first: no source is queried without signer and address
    - ValueAggregator fetches all sources concurrently and averages them
      (or draws a random integer in RANDOM mode)
    - FixedPointEncoder scales prices to integers (random values go as is)
    - LedgerUpdater reads, submits, confirms and reads back
"""

from __future__ import annotations

import logging

from .FixedPointEncoder import decode, encode, encode_raw
from .fetchers import BaseFetcher, get_fetcher
from .LedgerClient import LedgerClient, Web3LedgerClient
from .LedgerUpdater import ClientFactory, LedgerUpdater, TransactionRecord
from .OracleConfig import OracleConfig, OracleMode
from .ValueAggregator import CanonicalValue, ValueAggregator
from .ValueSource import PriceSource, RandomValueSource, ValueSource

logger = logging.getLogger(__name__)


class ValueOracle:
    """Runs the acquire, encode and commit pipeline for one update.

    :ivar config: Run configuration.
    :ivar aggregator: Source aggregator.
    :ivar updater: Ledger updater.
    """

    def __init__(
        self,
        config: OracleConfig,
        client_factory: ClientFactory | None = None,
        sources: list[ValueSource] | None = None,
    ) -> None:
        """Initialize the oracle.

        :param config: Run configuration.
        :param client_factory: Optional ledger client factory; defaults to a
            Web3 client on the configured network.
        :param sources: Optional value sources overriding those built from
            the configuration.
        :raises ValueError: If a configured source is unknown.
        """
        self.config = config
        self.sources = sources if sources is not None else self.build_sources()
        self.aggregator = ValueAggregator(fetch_timeout=config.fetch_timeout)
        self.updater = LedgerUpdater(
            client_factory=client_factory or self._connect,
            confirm_timeout=config.confirm_timeout,
            verify_readback=config.verify_readback,
        )

    def build_sources(self) -> list[ValueSource]:
        """Create the value sources for the configured mode.

        :returns: A single generator in RANDOM mode, else one PriceSource per
            configured source name, skipping sources that do not list the pair.
        :raises ValueError: If a source name is unknown.
        """
        config = self.config
        if config.mode is OracleMode.RANDOM:
            return [RandomValueSource(config.min_value, config.max_value)]

        sources: list[ValueSource] = []
        for name in config.sources:
            fetcher = get_fetcher(
                name, api_key=config.api_keys.get(name), timeout=config.fetch_timeout
            )
            if not fetcher.supports_pair(config.base, config.quote):
                logger.warning(f"[{name}] Does not support {config.pair}, skipping")
                continue
            sources.append(PriceSource(fetcher, config.base, config.quote))
        return sources

    def encode(self, canonical: CanonicalValue) -> int:
        """Convert the canonical value into the integer stored on-chain.

        :param canonical: Aggregated or generated value.
        :returns: Unsigned integer for the setter.
        :raises InvalidValue: If the value is negative or not finite.
        :raises EncodingOverflow: If the value does not fit uint256.
        """
        if self.config.mode is OracleMode.RANDOM:
            return encode_raw(canonical.value)
        encoded = encode(canonical.value, self.config.decimals)
        logger.info(
            f"Encoded {canonical.value} with {self.config.decimals} decimals: {encoded}"
        )
        return encoded

    async def run(self) -> TransactionRecord:
        """Run one update.

        :returns: TransactionRecord of the confirmed update.
        :raises ConfigurationMissing: If signer or address is missing.
        :raises NoSourcesAvailable: If every source failed.
        :raises EncodingError: If the value cannot be encoded.
        :raises LedgerError: If the on-chain update failed.
        """
        config = self.config
        client = self.updater.preflight(config.contract_address, config.private_key)

        try:
            canonical = await self.aggregator.fetch_all(self.sources)
        finally:
            await BaseFetcher.close_shared_client()

        new_value = self.encode(canonical)
        record = await self.updater.commit(
            client, config.getter_name, config.setter_name, new_value
        )

        if config.mode is OracleMode.PRICE:
            logger.info(
                f"{config.pair}: {decode(record.value_before, config.decimals)} -> "
                f"{decode(record.value_after, config.decimals)}"
            )
        return record

    def _connect(self, contract_address: str, private_key: str) -> LedgerClient:
        return Web3LedgerClient.connect(
            self.config.network,
            contract_address,
            private_key,
            self.config.getter_name,
            self.config.setter_name,
            rpc_url=self.config.rpc_url,
        )
