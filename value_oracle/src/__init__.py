"""
Value Oracle - On-Chain Value Update Module

This module commits a single value to a getter/setter contract per run:
- ValueSource: Random generator and per-pair price sources
- ValueAggregator: Fault-isolated fetching and mean aggregation
- FixedPointEncoder: Decimal to uint256 fixed-point encoding
- LedgerUpdater: Preflight, submit, confirm and read-back state machine
- ValueOracle: Main orchestrator for one update
- fetchers: Modular price fetcher implementations
"""

from .exceptions import (
    ConfigurationInvalid,
    ConfigurationMissing,
    ConfirmationFailed,
    EncodingError,
    EncodingOverflow,
    InvalidValue,
    LedgerError,
    NoSourcesAvailable,
    OracleError,
    SourceFetchFailed,
    SubmissionFailed,
    VerificationFailed,
)
from .FixedPointEncoder import DEFAULT_DECIMALS, decode, encode, encode_raw
from .LedgerUpdater import LedgerUpdater, TransactionRecord, UpdateStage
from .OracleConfig import OracleConfig, OracleMode
from .ValueAggregator import CanonicalValue, ValueAggregator
from .ValueOracle import ValueOracle
from .ValueSource import PriceSource, RandomValueSource, SourceResult, ValueSource

__all__ = [
    "CanonicalValue",
    "ConfigurationInvalid",
    "ConfigurationMissing",
    "ConfirmationFailed",
    "DEFAULT_DECIMALS",
    "EncodingError",
    "EncodingOverflow",
    "InvalidValue",
    "LedgerError",
    "LedgerUpdater",
    "NoSourcesAvailable",
    "OracleConfig",
    "OracleError",
    "OracleMode",
    "PriceSource",
    "RandomValueSource",
    "SourceFetchFailed",
    "SourceResult",
    "SubmissionFailed",
    "TransactionRecord",
    "UpdateStage",
    "ValueAggregator",
    "ValueOracle",
    "ValueSource",
    "VerificationFailed",
    "decode",
    "encode",
    "encode_raw",
]
