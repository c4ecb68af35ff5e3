"""LedgerUpdater: Commit one value to a getter/setter contract.

The update is a linear state machine; each stage is its own method so a
failure can be observed (or injected) at any single transition:

    PREFLIGHT -> READ_BEFORE -> SUBMIT -> CONFIRM -> READ_AFTER [-> VERIFY] -> DONE

Reads before and after the write are diagnostic. The post-update value is
compared with the submitted one only when ``verify_readback`` is enabled;
by default a confirmed receipt is trusted. A failed submission is never
retried and nothing is rolled back: the ledger is the authoritative state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .exceptions import (
    ConfigurationInvalid,
    ConfigurationMissing,
    ConfirmationFailed,
    LedgerError,
    SubmissionFailed,
    VerificationFailed,
)
from .LedgerClient import LedgerClient

logger = logging.getLogger(__name__)

# Builds a ledger client from (contract_address, signer_private_key).
ClientFactory = Callable[[str, str], LedgerClient]

DEFAULT_CONFIRM_TIMEOUT = 120.0


class UpdateStage(str, Enum):
    """Stages of a ledger update, in execution order."""

    PREFLIGHT = "preflight"
    READ_BEFORE = "read_before"
    SUBMIT = "submit"
    CONFIRM = "confirm"
    READ_AFTER = "read_after"
    VERIFY = "verify"
    DONE = "done"


@dataclass(frozen=True)
class TransactionRecord:
    """Result of a confirmed update.

    :ivar tx_hash: Transaction hash.
    :ivar block_number: Block the transaction was confirmed in.
    :ivar value: Value submitted to the setter.
    :ivar value_before: Getter reading before the update.
    :ivar value_after: Getter reading after confirmation.
    """

    tx_hash: str
    block_number: int
    value: int
    value_before: int
    value_after: int


class LedgerUpdater:
    """Runs the read/submit/confirm/read sequence against one contract.

    :ivar client_factory: Callable creating the ledger client in preflight.
    :ivar confirm_timeout: Seconds to wait for the transaction receipt.
    :ivar verify_readback: Whether to check the read-back value.
    :ivar stage: Current stage, for diagnostics.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT,
        verify_readback: bool = False,
    ) -> None:
        """Initialize the updater.

        :param client_factory: Callable taking (contract_address, signer)
            and returning a LedgerClient.
        :param confirm_timeout: Receipt timeout in seconds (default: 120).
        :param verify_readback: Fail if the getter does not return the
            submitted value after confirmation (default: False).
        :raises ValueError: If confirm_timeout is not positive.
        """
        if confirm_timeout <= 0:
            raise ValueError("confirm_timeout must be positive")
        self.client_factory = client_factory
        self.confirm_timeout = confirm_timeout
        self.verify_readback = verify_readback
        self.stage = UpdateStage.PREFLIGHT

    async def update(
        self,
        contract_address: str | None,
        signer: str | None,
        getter: str,
        setter: str,
        new_value: int,
    ) -> TransactionRecord:
        """Write new_value to the contract and wait for confirmation.

        :param contract_address: Target contract address.
        :param signer: Private key of the signing account.
        :param getter: Name of the read-only getter.
        :param setter: Name of the state-changing setter.
        :param new_value: Encoded value to store.
        :returns: TransactionRecord of the confirmed update.
        :raises ConfigurationMissing: If signer or address is missing.
        :raises SubmissionFailed: If the transaction could not be sent.
        :raises ConfirmationFailed: If the transaction was not confirmed.
        :raises VerificationFailed: If read-back verification is enabled
            and the stored value differs.
        :raises LedgerError: If a diagnostic read fails.
        """
        client = self.preflight(contract_address, signer)
        return await self.commit(client, getter, setter, new_value)

    async def commit(
        self, client: LedgerClient, getter: str, setter: str, new_value: int
    ) -> TransactionRecord:
        """Run every stage after preflight with an already created client.

        :param client: Client returned by preflight().
        :param getter: Name of the read-only getter.
        :param setter: Name of the state-changing setter.
        :param new_value: Encoded value to store.
        :returns: TransactionRecord of the confirmed update.
        """
        value_before = await self.read_before(client, getter)
        tx_hash = await self.submit(client, setter, new_value)
        block_number = await self.confirm(client, tx_hash)
        value_after = await self.read_after(client, getter)
        if self.verify_readback:
            self.verify(value_after, new_value)

        self._enter(UpdateStage.DONE)
        return TransactionRecord(
            tx_hash=tx_hash,
            block_number=block_number,
            value=new_value,
            value_before=value_before,
            value_after=value_after,
        )

    def preflight(self, contract_address: str | None, signer: str | None) -> LedgerClient:
        """Check required configuration and create the ledger client.

        :returns: Ledger client bound to the contract and signer.
        :raises ConfigurationMissing: If signer or address is missing.
        :raises ConfigurationInvalid: If the client rejects them.
        """
        self._enter(UpdateStage.PREFLIGHT)
        if not signer or not signer.strip():
            raise ConfigurationMissing("PRIVATE_KEY is required")
        if not contract_address or not contract_address.strip():
            raise ConfigurationMissing("CONTRACT_ADDRESS is required")

        try:
            return self.client_factory(contract_address.strip(), signer.strip())
        except ValueError as e:
            raise ConfigurationInvalid(f"Invalid signer or contract address: {e}") from e

    async def read_before(self, client: LedgerClient, getter: str) -> int:
        """Read the current on-chain value.

        :raises LedgerError: If the getter call fails.
        """
        self._enter(UpdateStage.READ_BEFORE)
        value = await self._read(client, getter)
        logger.info(f"Current contract value: {value}")
        return value

    async def submit(self, client: LedgerClient, setter: str, new_value: int) -> str:
        """Send the setter transaction.

        :returns: Transaction hash.
        :raises SubmissionFailed: On signing or RPC failure.
        """
        self._enter(UpdateStage.SUBMIT)
        try:
            tx_hash = await client.submit(setter, new_value)
        except Exception as e:
            raise SubmissionFailed(
                f"{setter}({new_value}) failed: {e}", stage=self.stage.value
            ) from e
        logger.info(f"Transaction hash: {tx_hash}")
        return tx_hash

    async def confirm(self, client: LedgerClient, tx_hash: str) -> int:
        """Wait for the transaction receipt.

        :returns: Block number of the confirmed transaction.
        :raises ConfirmationFailed: On timeout, RPC failure or revert.
        """
        self._enter(UpdateStage.CONFIRM)
        try:
            receipt = await client.wait_for_confirmation(tx_hash, self.confirm_timeout)
        except Exception as e:
            raise ConfirmationFailed(
                f"Transaction {tx_hash} not confirmed: {e}", stage=self.stage.value
            ) from e

        if not receipt.success:
            raise ConfirmationFailed(
                f"Transaction {tx_hash} reverted in block {receipt.block_number}",
                stage=self.stage.value,
            )
        logger.info(f"Transaction confirmed in block {receipt.block_number}")
        return receipt.block_number

    async def read_after(self, client: LedgerClient, getter: str) -> int:
        """Read the on-chain value after confirmation.

        :raises LedgerError: If the getter call fails.
        """
        self._enter(UpdateStage.READ_AFTER)
        value = await self._read(client, getter)
        logger.info(f"New contract value: {value}")
        return value

    def verify(self, value_after: int, new_value: int) -> None:
        """Check that the stored value is the submitted one.

        :raises VerificationFailed: If the values differ.
        """
        self._enter(UpdateStage.VERIFY)
        if value_after != new_value:
            raise VerificationFailed(
                f"Contract holds {value_after}, expected {new_value}",
                stage=self.stage.value,
            )

    async def _read(self, client: LedgerClient, getter: str) -> int:
        try:
            return await client.read(getter)
        except Exception as e:
            raise LedgerError(f"{getter}() failed: {e}", stage=self.stage.value) from e

    def _enter(self, stage: UpdateStage) -> None:
        self.stage = stage
        logger.debug(f"Ledger update stage: {stage.value}")
