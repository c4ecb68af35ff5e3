#!/usr/bin/env python3
"""Value Oracle.

Computes a value (a random number or a price averaged over several
off-chain sources), writes it to an on-chain contract and waits for the
transaction to be confirmed. One update per invocation; schedule it
externally (cron, container restart policy, ...).

Configure via CLI flags, environment variables or a .env file.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from .src.exceptions import OracleError
from .src.fetchers import get_available_fetchers
from .src.OracleConfig import (
    DEFAULT_NETWORK,
    DEFAULT_PAIR,
    DEFAULT_SOURCES,
    OracleConfig,
    OracleMode,
)
from .src.ValueOracle import ValueOracle

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "on"}
API_KEY_ENV_PREFIXES = ("API_KEY_", "APIKEY_")


def split_names(value: str) -> list[str]:
    """Split a comma-separated list into lowercase names.

    Blanks are dropped and repeated names kept once, in first-seen order.
    """
    names = (name.strip().lower() for name in value.split(","))
    return list(dict.fromkeys(name for name in names if name))


def parse_api_keys(raw: str | None) -> dict[str, str]:
    """Read ``source=key`` pairs from a comma-separated string.

    ``"coingecko=demo:CG-1,coinmarketcap=abc"`` gives one key per source.
    Entries without ``=`` or with an empty key are ignored; keys may
    themselves contain ``=``.

    :param raw: Value of --api-keys / API_KEYS.
    :returns: Source name to API key.
    """
    keys: dict[str, str] = {}
    for entry in (raw or "").split(","):
        source, sep, key = entry.partition("=")
        if sep and key.strip():
            keys[source.strip().lower()] = key.strip()
    return keys


def parse_env_api_keys(environ: dict[str, str] | None = None) -> dict[str, str]:
    """Collect per-source keys from API_KEY_<SOURCE> (or APIKEY_<SOURCE>).

    :param environ: Environment to scan (default: os.environ).
    :returns: Source name to API key.
    """
    environ = os.environ if environ is None else environ
    keys: dict[str, str] = {}
    for name, value in environ.items():
        prefix = next((p for p in API_KEY_ENV_PREFIXES if name.startswith(p)), None)
        if prefix and value:
            keys[name[len(prefix):].lower()] = value
    return keys


def build_parser(available_sources: list[str]) -> argparse.ArgumentParser:
    """Build the CLI parser, with defaults taken from the environment.

    :param available_sources: Registered price source names.
    :returns: Configured argument parser.
    """
    env = os.environ

    parser = argparse.ArgumentParser(
        description="Value Oracle: commit a random number or aggregated price on-chain",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available price sources:
  {', '.join(available_sources)}

Examples:
  # Random value in [1, 1000000] to getValue/setValue
  python -m value_oracle.main --address 0x5FbDB2315678afecb367f032d93F642f64180aa3

  # BTC/USD averaged over CoinGecko and CoinMarketCap, 8 decimals
  python -m value_oracle.main --mode price --pair btc/usd \\
      --sources coingecko,coinmarketcap --api-keys coinmarketcap=your-api-key

Environment variables (flags override them):
  MODE, NETWORK, RPC_URL, PRIVATE_KEY, CONTRACT_ADDRESS, GETTER, SETTER,
  PAIR, SOURCES, DECIMALS, MIN_VALUE, MAX_VALUE, FETCH_TIMEOUT,
  CONFIRM_TIMEOUT, VERIFY_READBACK, API_KEYS, API_KEY_COINGECKO, etc.
""",
    )

    parser.add_argument(
        "--mode",
        type=str,
        choices=[m.value for m in OracleMode],
        help="What to write: a random integer or an aggregated price (default: random)",
        default=env.get("MODE") or OracleMode.RANDOM.value,
    )

    parser.add_argument(
        "--network",
        type=str,
        help="Network to connect to (localhost, sapphire, sapphire-testnet, sapphire-localnet)",
        default=env.get("NETWORK") or DEFAULT_NETWORK,
    )

    parser.add_argument(
        "--rpc-url",
        dest="rpc_url",
        type=str,
        help="RPC endpoint URL (overrides the network default)",
        default=env.get("RPC_URL"),
    )

    parser.add_argument(
        "--private-key",
        dest="private_key",
        type=str,
        help="Signer private key (prefer the PRIVATE_KEY environment variable)",
        default=env.get("PRIVATE_KEY"),
    )

    parser.add_argument(
        "--address",
        type=str,
        help="Address of the target contract",
        default=env.get("CONTRACT_ADDRESS"),
    )

    parser.add_argument(
        "--getter",
        type=str,
        help="Getter function name (default: getValue, or getPrice in price mode)",
        default=env.get("GETTER"),
    )

    parser.add_argument(
        "--setter",
        type=str,
        help="Setter function name (default: setValue, or setPrice in price mode)",
        default=env.get("SETTER"),
    )

    parser.add_argument(
        "--pair",
        type=str,
        help=f"Trading pair for price mode (default: {DEFAULT_PAIR})",
        default=env.get("PAIR") or DEFAULT_PAIR,
    )

    parser.add_argument(
        "--sources",
        type=str,
        help=f"Price sources to average, comma-separated (default: {','.join(DEFAULT_SOURCES)})",
        default=env.get("SOURCES") or ",".join(DEFAULT_SOURCES),
    )

    parser.add_argument(
        "--api-keys",
        dest="api_keys",
        type=str,
        help="Per-source API keys as source=key pairs, comma-separated",
        default=env.get("API_KEYS"),
    )

    # String defaults pass through type=, so a malformed value is a usage error
    parser.add_argument(
        "--decimals",
        type=int,
        help="Decimals of the on-chain price (default: 8)",
        default=env.get("DECIMALS") or "8",
    )

    parser.add_argument(
        "--min-value",
        dest="min_value",
        type=int,
        help="Inclusive lower bound of the random value (default: 1)",
        default=env.get("MIN_VALUE") or "1",
    )

    parser.add_argument(
        "--max-value",
        dest="max_value",
        type=int,
        help="Inclusive upper bound of the random value (default: 1000000)",
        default=env.get("MAX_VALUE") or "1000000",
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Seconds allowed per price source (default: 10.0)",
        default=env.get("FETCH_TIMEOUT") or "10.0",
    )

    parser.add_argument(
        "--confirm-timeout",
        dest="confirm_timeout",
        type=float,
        help="Seconds to wait for the transaction receipt (default: 120.0)",
        default=env.get("CONFIRM_TIMEOUT") or "120.0",
    )

    parser.add_argument(
        "--verify",
        dest="verify_readback",
        action="store_true",
        help="Fail if the contract does not hold the submitted value afterwards",
        default=(env.get("VERIFY_READBACK") or "").strip().lower() in TRUE_VALUES,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )

    return parser


def build_config(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    available_sources: list[str],
) -> OracleConfig:
    """Validate parsed arguments and turn them into an OracleConfig.

    Usage errors exit through parser.error(). A missing signer or contract
    address is left for the ledger preflight to report.

    :param parser: Parser used for error reporting.
    :param args: Parsed arguments.
    :param available_sources: Registered price source names.
    :returns: Run configuration.
    """
    if args.fetch_timeout <= 0:
        parser.error("--fetch-timeout must be positive")

    if args.confirm_timeout <= 0:
        parser.error("--confirm-timeout must be positive")

    sources = split_names(args.sources)
    mode = OracleMode(args.mode)

    if mode is OracleMode.PRICE:
        if not sources:
            parser.error("--sources needs at least one price source")
        unknown = sorted(set(sources) - set(available_sources))
        if unknown:
            parser.error(
                f"Unknown price source(s) {', '.join(unknown)}; "
                f"choose from {', '.join(available_sources)}"
            )

    # --api-keys wins over API_KEY_<SOURCE>
    api_keys = {**parse_env_api_keys(), **parse_api_keys(args.api_keys)}

    try:
        return OracleConfig(
            mode=mode,
            network=args.network,
            rpc_url=args.rpc_url,
            private_key=args.private_key,
            contract_address=args.address,
            getter=args.getter,
            setter=args.setter,
            pair=args.pair,
            sources=tuple(sources),
            api_keys=api_keys,
            decimals=args.decimals,
            min_value=args.min_value,
            max_value=args.max_value,
            fetch_timeout=args.fetch_timeout,
            confirm_timeout=args.confirm_timeout,
            verify_readback=args.verify_readback,
        )
    except ValueError as e:
        parser.error(str(e))


def log_config(config: OracleConfig) -> None:
    """Log the run configuration, without secrets."""
    logger.info("=" * 60)
    logger.info("Value Oracle - On-Chain Update")
    logger.info("=" * 60)
    logger.info(f"Mode:              {config.mode.value}")
    logger.info(f"Network:           {config.rpc_url or config.network}")
    logger.info(f"Contract:          {config.contract_address or 'not set'}")
    logger.info(f"Functions:         {config.getter_name}/{config.setter_name}")
    if config.mode is OracleMode.PRICE:
        logger.info(f"Trading Pair:      {config.pair}")
        logger.info(f"Sources:           {', '.join(config.sources)}")
        logger.info(f"Decimals:          {config.decimals}")
        logger.info(f"Fetch Timeout:     {config.fetch_timeout}s")
        if config.api_keys:
            logger.info(f"API Keys:          {', '.join(config.api_keys.keys())}")
    else:
        logger.info(f"Range:             [{config.min_value}, {config.max_value}]")
    logger.info(f"Confirm Timeout:   {config.confirm_timeout}s")
    logger.info(f"Verify Read-back:  {'enabled' if config.verify_readback else 'disabled'}")
    logger.info("=" * 60)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the Value Oracle CLI."""
    load_dotenv()
    available_sources = get_available_fetchers()

    parser = build_parser(available_sources)
    args = parser.parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = build_config(parser, args, available_sources)
    log_config(config)

    try:
        value_oracle = ValueOracle(config)
        record = asyncio.run(value_oracle.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
        sys.exit(1)
    except OracleError as e:
        logger.error(f"Oracle update failed: {type(e).__name__}: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {type(e).__name__}: {e}")
        sys.exit(1)

    logger.info(
        f"Oracle update complete: tx {record.tx_hash} in block {record.block_number}"
    )


if __name__ == "__main__":
    main()
