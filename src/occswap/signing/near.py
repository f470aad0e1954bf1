"""NEAR transaction executor backed by py-near."""

import logging
from typing import Any, Callable, Optional, Sequence

from occswap.api.contracts import UnsignedTransaction
from occswap.signing.base import (
    MAINNET_RPC_URL,
    NETWORK_RPC_URLS,
    SigningError,
    TransactionExecutor,
)

logger = logging.getLogger(__name__)

AccountFactory = Callable[[str, str, str], Any]


def create_py_near_account(account_id: str, private_key: str, rpc_url: str) -> Any:
    """Create a py-near account session."""
    from py_near.account import Account

    return Account(account_id, private_key, rpc_addr=rpc_url)


class NearTransactionExecutor(TransactionExecutor):
    """Signs function-call transactions returned by the swap API.

    Only the first action of each transaction is submitted. The swap API
    currently returns single-action transactions (storage deposit, then
    ``ft_transfer_call``); extra actions are logged and skipped.
    """

    def __init__(self, account_factory: Optional[AccountFactory] = None):
        self._account_factory = account_factory or create_py_near_account

    async def sign_and_send_multiple(
        self,
        account_id: str,
        private_key: str,
        transactions: Sequence[UnsignedTransaction],
        network: str = "mainnet",
        rpc_url: str = MAINNET_RPC_URL,
    ) -> list[str]:
        if network not in NETWORK_RPC_URLS:
            raise SigningError(f"Unknown NEAR network: {network}")

        try:
            account = self._account_factory(account_id, private_key, rpc_url)
            await account.startup()
        except Exception as e:
            raise SigningError(f"Failed to open NEAR session for {account_id}: {e}") from e

        logger.info(f"Sending {len(transactions)} transaction(s) from {account_id} on {network}")

        tx_hashes: list[str] = []
        for index, tx in enumerate(transactions, start=1):
            if not tx.actions:
                raise SigningError(
                    f"Transaction {index} to {tx.receiver_id} has no actions", tx_hashes
                )
            if len(tx.actions) > 1:
                logger.warning(
                    f"Transaction {index} to {tx.receiver_id} has {len(tx.actions)} actions, "
                    "only the first is submitted"
                )

            params = tx.actions[0].params
            try:
                result = await account.function_call(
                    tx.receiver_id,
                    params.method_name,
                    params.args,
                    gas=int(params.gas),
                    amount=int(params.deposit),
                )
            except Exception as e:
                logger.error(f"Transaction {index} ({params.method_name} on {tx.receiver_id}) failed: {e}")
                raise SigningError(
                    f"Transaction {index} of {len(transactions)} failed: {e}", tx_hashes
                ) from e

            tx_hash = result.transaction.hash
            logger.info(f"Transaction {index}: {params.method_name} on {tx.receiver_id} -> {tx_hash}")
            tx_hashes.append(tx_hash)

        return tx_hashes
