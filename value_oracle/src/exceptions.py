"""Error taxonomy for the value oracle pipeline.

Only :class:`SourceFetchFailed` is recoverable: the aggregator records it
per source and carries on. Everything else is fatal for the run and
propagates to ``main()``, which logs it and exits non-zero.
"""

from __future__ import annotations


class OracleError(Exception):
    """Base exception for all oracle pipeline errors."""

    pass


class ConfigurationMissing(OracleError):
    """Raised when a required setting (signer, contract address) is absent."""

    pass


class ConfigurationInvalid(ConfigurationMissing):
    """Raised when a required setting is present but unusable (e.g. bad key)."""

    pass


class SourceFetchFailed(OracleError):
    """Raised by a value source that could not produce a value."""

    pass


class NoSourcesAvailable(OracleError):
    """Raised when no value source produced a usable value.

    :ivar failures: Dict mapping failed source names to failure reasons.
    """

    def __init__(self, message: str, failures: dict[str, str] | None = None):
        self.failures = failures or {}
        super().__init__(message)


class EncodingError(OracleError):
    """Base exception for fixed-point encoding errors."""

    pass


class InvalidValue(EncodingError):
    """Raised when a value is negative, non-finite or not a number."""

    pass


class EncodingOverflow(EncodingError):
    """Raised when the scaled value does not fit the target integer width."""

    pass


class LedgerError(OracleError):
    """Base exception for ledger update failures.

    :ivar stage: Name of the update stage that failed.
    """

    def __init__(self, message: str, stage: str | None = None):
        self.stage = stage
        super().__init__(message)


class SubmissionFailed(LedgerError):
    """Raised when the setter transaction could not be signed or sent."""

    pass


class ConfirmationFailed(LedgerError):
    """Raised when a submitted transaction was not confirmed."""

    pass


class VerificationFailed(LedgerError):
    """Raised when read-back verification finds an unexpected value."""

    pass
