"""LedgerClient: Abstract ledger access and its Web3 implementation."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .ContractUtility import ContractUtility

if TYPE_CHECKING:
    from web3 import Web3
    from web3.contract import Contract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Receipt:
    """Outcome of a mined transaction.

    :ivar block_number: Block the transaction was included in.
    :ivar success: False if the transaction reverted.
    """

    block_number: int
    success: bool


class LedgerClient(ABC):
    """Abstract base class for ledger clients.

    Provides the three primitives a value update needs: a contract read,
    a signed contract write and waiting for its receipt.
    """

    @abstractmethod
    async def read(self, function_name: str) -> int:
        """Call a read-only contract function.

        :param function_name: Getter name.
        :returns: Returned unsigned integer.
        """
        pass

    @abstractmethod
    async def submit(self, function_name: str, value: int) -> str:
        """Sign and send a state-changing contract call.

        :param function_name: Setter name.
        :param value: Single uint256 argument.
        :returns: 0x-prefixed transaction hash.
        """
        pass

    @abstractmethod
    async def wait_for_confirmation(self, tx_hash: str, timeout: float) -> Receipt:
        """Wait until a transaction is included in a block.

        :param tx_hash: Transaction hash returned by submit().
        :param timeout: Maximum time to wait in seconds.
        :returns: Receipt of the mined transaction.
        """
        pass


class Web3LedgerClient(LedgerClient):
    """Ledger client over a synchronous Web3 instance.

    Blocking RPC calls run in a worker thread so the event loop stays free.

    :ivar w3: Web3 instance with a signing middleware installed.
    :ivar contract: Target contract.
    """

    def __init__(self, w3: Web3, contract_address: str, abi: list[dict]) -> None:
        """Initialize the client.

        :param w3: Web3 instance whose default account signs transactions.
        :param contract_address: Address of the target contract.
        :param abi: Contract ABI containing the getter and setter.
        :raises ValueError: If the address is not a valid address.
        """
        self.w3 = w3
        self.contract: Contract = w3.eth.contract(
            address=w3.to_checksum_address(contract_address), abi=abi
        )

    @classmethod
    def connect(
        cls,
        network_name: str,
        contract_address: str,
        private_key: str,
        getter: str,
        setter: str,
        rpc_url: str | None = None,
    ) -> Web3LedgerClient:
        """Create a client for a getter/setter contract on a network.

        :param network_name: Network name (see ContractUtility.NETWORKS).
        :param contract_address: Target contract address.
        :param private_key: Signer private key.
        :param getter: Getter function name.
        :param setter: Setter function name.
        :param rpc_url: Optional RPC URL override.
        :returns: Connected client.
        """
        contract_utility = ContractUtility(network_name, private_key, rpc_url=rpc_url)
        logger.info(
            f"Connected to {contract_utility.network} as {contract_utility.account.address}"
        )
        abi = ContractUtility.build_abi(getter, setter)
        return cls(contract_utility.w3, contract_address, abi)

    async def read(self, function_name: str) -> int:
        function = getattr(self.contract.functions, function_name)
        return await asyncio.to_thread(function().call)

    async def submit(self, function_name: str, value: int) -> str:
        function = getattr(self.contract.functions, function_name)

        def _send() -> str:
            tx_params = function(value).build_transaction(
                {"gasPrice": self.w3.eth.gas_price}
            )
            tx_hash = self.w3.eth.send_transaction(tx_params)
            return self.w3.to_hex(tx_hash)

        return await asyncio.to_thread(_send)

    async def wait_for_confirmation(self, tx_hash: str, timeout: float) -> Receipt:
        tx_receipt = await asyncio.to_thread(
            self.w3.eth.wait_for_transaction_receipt, tx_hash, timeout=timeout
        )
        return Receipt(
            block_number=tx_receipt["blockNumber"],
            success=tx_receipt["status"] == 1,
        )
