"""Base interfaces for transaction signing.

Signing flow:
1. Swap API returns unsigned transactions for the deposit
2. Executor opens one authenticated session with the user's key
3. Each transaction is signed and broadcast in order
4. Hashes are returned in the same order

Blockchain transactions cannot be rolled back, so the first failure stops
the sequence and reports what was already sent.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from occswap.api.contracts import UnsignedTransaction
from occswap.errors import OccSwapError

logger = logging.getLogger(__name__)

NETWORK_RPC_URLS = {
    "mainnet": "https://rpc.mainnet.near.org",
    "testnet": "https://rpc.testnet.near.org",
}

MAINNET_RPC_URL = NETWORK_RPC_URLS["mainnet"]


class SigningError(OccSwapError):
    """Raised when signing or broadcasting a transaction fails.

    Attributes:
        sent_hashes: Hashes of transactions broadcast before the failure
    """

    def __init__(self, message: str, sent_hashes: Optional[list[str]] = None):
        self.sent_hashes = list(sent_hashes or [])
        super().__init__(message)


class TransactionExecutor(ABC):
    """Signs and broadcasts unsigned transactions for one account."""

    @abstractmethod
    async def sign_and_send_multiple(
        self,
        account_id: str,
        private_key: str,
        transactions: Sequence[UnsignedTransaction],
        network: str = "mainnet",
        rpc_url: str = MAINNET_RPC_URL,
    ) -> list[str]:
        """Sign and send transactions sequentially.

        Args:
            account_id: Signing account (e.g. "alice.near")
            private_key: Key for the account ("ed25519:...")
            transactions: Transactions in execution order
            network: Network id
            rpc_url: RPC endpoint to broadcast through

        Returns:
            One transaction hash per input transaction, in input order

        Raises:
            SigningError: On the first failed transaction; later
                transactions are not attempted
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
