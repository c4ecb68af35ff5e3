"""ContractUtility: Web3 initialization and minimal getter/setter ABI."""

from eth_account import Account
from eth_account.signers.local import LocalAccount
from sapphirepy import sapphire
from web3 import Web3
from web3.middleware import SignAndSendRawMiddlewareBuilder

# Default RPC endpoints per network name.
NETWORKS: dict[str, str] = {
    "localhost": "http://127.0.0.1:8545",
    "sapphire": "https://sapphire.oasis.io",
    "sapphire-testnet": "https://testnet.sapphire.oasis.io",
    "sapphire-localnet": "http://localhost:8545",
}


class ContractUtility:
    """Utility for Web3 connection and contract ABI construction.

    :ivar network: Network RPC URL.
    :ivar w3: Configured Web3 instance, signing with the oracle account.
    :ivar account: Local signing account.
    """

    def __init__(self, network_name: str, private_key: str, rpc_url: str | None = None) -> None:
        """Initialize the contract utility.

        :param network_name: Name of the network to connect to. Unknown names
            are used as the RPC URL itself.
        :param private_key: Hex private key of the signing account.
        :param rpc_url: Optional RPC URL overriding the network default.
        :raises ValueError: If the private key is malformed.
        """
        self.network = rpc_url or NETWORKS.get(network_name, network_name)

        self.account: LocalAccount = Account.from_key(private_key)
        self.w3 = Web3(Web3.HTTPProvider(self.network))
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
        self.w3.eth.default_account = self.account.address

        # Sapphire encrypts calldata; other EVM chains take plain transactions
        if network_name.startswith("sapphire"):
            self.w3 = sapphire.wrap(self.w3)

    @staticmethod
    def build_abi(getter: str, setter: str) -> list[dict]:
        """Build the ABI of a contract exposing one uint256 getter and setter.

        :param getter: Name of the view function returning uint256.
        :param setter: Name of the function accepting one uint256.
        :returns: ABI list suitable for ``w3.eth.contract``.
        """
        return [
            {
                "type": "function",
                "name": getter,
                "inputs": [],
                "outputs": [{"name": "", "type": "uint256"}],
                "stateMutability": "view",
            },
            {
                "type": "function",
                "name": setter,
                "inputs": [{"name": "_value", "type": "uint256"}],
                "outputs": [],
                "stateMutability": "nonpayable",
            },
        ]
