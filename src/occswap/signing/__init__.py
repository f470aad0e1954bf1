"""Transaction signing and broadcasting."""

from occswap.signing.base import (
    MAINNET_RPC_URL,
    NETWORK_RPC_URLS,
    SigningError,
    TransactionExecutor,
)
from occswap.signing.near import NearTransactionExecutor

__all__ = [
    "MAINNET_RPC_URL",
    "NETWORK_RPC_URLS",
    "SigningError",
    "TransactionExecutor",
    "NearTransactionExecutor",
]
