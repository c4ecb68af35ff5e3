"""Shared fixtures: an in-memory ledger client."""

import pytest

from value_oracle.src.LedgerClient import LedgerClient, Receipt


class FakeLedgerClient(LedgerClient):
    """In-memory contract with a single uint256 slot.

    Set ``fail_on`` to "read", "submit" or "confirm" to make that call raise,
    or ``revert`` to return a failed receipt.
    """

    def __init__(self, stored: int = 0) -> None:
        self.stored = stored
        self.calls: list[tuple] = []
        self.fail_on: str | None = None
        self.revert = False
        self.ignore_writes = False
        self.block_number = 100

    async def read(self, function_name: str) -> int:
        self.calls.append(("read", function_name))
        if self.fail_on == "read":
            raise ConnectionError("rpc unreachable")
        return self.stored

    async def submit(self, function_name: str, value: int) -> str:
        self.calls.append(("submit", function_name, value))
        if self.fail_on == "submit":
            raise ValueError("insufficient funds for gas * price + value")
        if not self.ignore_writes:
            self.stored = value
        return "0x" + "ab" * 32

    async def wait_for_confirmation(self, tx_hash: str, timeout: float) -> Receipt:
        self.calls.append(("confirm", tx_hash, timeout))
        if self.fail_on == "confirm":
            raise TimeoutError(f"Transaction {tx_hash} is not in the chain after {timeout} seconds")
        self.block_number += 1
        return Receipt(block_number=self.block_number, success=not self.revert)

    def call_kinds(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def ledger_client() -> FakeLedgerClient:
    """Fresh in-memory ledger holding 42."""
    return FakeLedgerClient(stored=42)


@pytest.fixture
def client_factory(ledger_client):
    """Factory returning the shared fake client and recording its arguments."""
    received: list[tuple[str, str]] = []

    def factory(contract_address: str, signer: str) -> FakeLedgerClient:
        received.append((contract_address, signer))
        return ledger_client

    factory.received = received
    return factory
