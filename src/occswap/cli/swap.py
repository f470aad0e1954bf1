"""``occ-swap swap`` commands: tokens, quote, execute, status.

Commands receive their collaborators explicitly so tests can run them
against temporary files, a mock HTTP transport and a fake signer.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from occswap.amounts import parse_amount, to_smallest_unit
from occswap.api.client import SwapApiClient
from occswap.api.contracts import QuoteResponse, StatusResponse
from occswap.cli import output
from occswap.config import (
    ConfigStore,
    MissingConfigurationError,
    SwapConfig,
    ensure_supported_blockchain,
    get_blockchain_env,
    validate_blockchain_env,
)
from occswap.errors import OccSwapError
from occswap.signing.base import MAINNET_RPC_URL, TransactionExecutor
from occswap.token_cache import Token, TokenCacheStore, filter_tokens

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], SwapApiClient]

NEAR_TOKEN_PREFIX = "nep141:"

# Swaps settle on mainnet only
SWAP_NETWORK = "mainnet"


class SwapCommands:
    """Implements the swap command group."""

    def __init__(
        self,
        config_store: ConfigStore,
        token_cache: TokenCacheStore,
        client_factory: ClientFactory,
        executor: TransactionExecutor,
    ):
        self.config_store = config_store
        self.token_cache = token_cache
        self.client_factory = client_factory
        self.executor = executor

    def _require_chain_config(self, chain: str, config: SwapConfig) -> None:
        validation = validate_blockchain_env(chain, config)
        if not validation.valid:
            raise MissingConfigurationError(chain, validation.missing_vars)

    async def tokens(
        self,
        blockchain: Optional[str] = None,
        symbol: Optional[str] = None,
        refresh: bool = False,
    ) -> list[Token]:
        """List swappable tokens, from cache unless refresh is requested."""
        async with self.client_factory() as client:
            if refresh:
                output.line("Refreshing token cache...", output.CYAN)
                response = await client.list_tokens()
                self.token_cache.save(response.tokens, response.expires_at)
                tokens = response.tokens
                output.line(f"{output.CHECK} Cached {len(tokens)} tokens\n", output.GREEN)
            else:
                async def fetch():
                    response = await client.list_tokens()
                    return response.tokens, response.expires_at

                tokens = await self.token_cache.get_or_fetch(fetch)

                cache = self.token_cache.load()
                if cache is not None and not self.token_cache.is_expired(cache):
                    output.line(f"Using cached tokens (updated: {cache.last_updated})\n", output.GREY)

        tokens = filter_tokens(tokens, blockchain=blockchain, symbol=symbol)

        if not tokens:
            output.line("No tokens found", output.YELLOW)
            return tokens

        output.line(f"Supported Tokens ({len(tokens)}):", output.CYAN)
        output.rule()
        for token in tokens:
            print(
                output.paint(token.symbol.ljust(10), output.WHITE)
                + output.paint(token.name.ljust(30), output.GREY)
                + output.paint(token.blockchain.ljust(15), output.BLUE)
                + output.paint(f"{token.decimals} decimals", output.GREY)
            )
        output.rule()

        if not refresh:
            output.line("\nTip: Use --refresh to update token cache", output.GREY)
        return tokens

    async def quote(
        self,
        from_symbol: str,
        to_symbol: str,
        amount: str,
        from_chain: str = "near",
        to_chain: str = "near",
        recipient: Optional[str] = None,
        refund: Optional[str] = None,
        dry: bool = False,
    ) -> QuoteResponse:
        """Resolve both tokens and request a quote."""
        from_chain = ensure_supported_blockchain(from_chain)
        to_chain = ensure_supported_blockchain(to_chain)

        config = self.config_store.load()
        self._require_chain_config(from_chain, config)
        self._require_chain_config(to_chain, config)

        from_token = self.token_cache.require_token(from_symbol, from_chain)
        to_token = self.token_cache.require_token(to_symbol, to_chain)

        value = parse_amount(amount)
        smallest_unit = to_smallest_unit(value, from_token.decimals)

        # CLI option > configured recipient/refund > account address > public key
        from_env = get_blockchain_env(from_chain, config)
        to_env = get_blockchain_env(to_chain, config)
        recipient_address = recipient or to_env.recipient_address or to_env.default_address()
        refund_address = refund or from_env.refund_address or from_env.default_address()

        output.line(f"From: {from_token.symbol} ({from_token.asset_id})", output.GREY)
        output.line(f"To: {to_token.symbol} ({to_token.asset_id})", output.GREY)
        output.line(
            f"Amount: {value} {from_token.symbol} = {smallest_unit} (smallest unit)\n",
            output.GREY,
        )

        async with self.client_factory() as client:
            quote = await client.get_quote(
                from_asset_id=from_token.asset_id,
                to_asset_id=to_token.asset_id,
                amount=smallest_unit,
                recipient_address=recipient_address,
                refund_address=refund_address,
                dry=dry,
            )

        output.line("Swap Quote", output.CYAN)
        output.rule()
        output.field("Deposit Address", quote.deposit_address, output.YELLOW)
        if quote.memo:
            output.field("Memo", quote.memo, output.YELLOW)
        output.field("Expected Output", quote.expected_output, output.GREEN)
        output.field("Exchange Rate", quote.exchange_rate, output.BLUE)
        output.field("Fees", quote.fees, output.GREY)
        output.field("Expires At", _format_epoch(quote.expires_at), output.GREY)
        output.rule()

        if dry:
            output.line(f"\n{output.WARN}  This is a DRY RUN with mock addresses", output.YELLOW)

        output.line("\nTo execute this swap, run:", output.CYAN)
        command = (
            f"occ-swap swap execute --deposit-address {quote.deposit_address} "
            f"--amount {value} --from {from_symbol}"
        )
        if quote.memo:
            command += f" --memo {quote.memo}"
        output.line(command)
        return quote

    async def execute(
        self,
        deposit_address: str,
        amount: str,
        from_symbol: str,
        from_chain: str = "near",
        memo: Optional[str] = None,
    ) -> list[str]:
        """Send funds to a quote's deposit address and report the deposit."""
        from_chain = ensure_supported_blockchain(from_chain)

        config = self.config_store.load()
        self._require_chain_config(from_chain, config)
        env = get_blockchain_env(from_chain, config)

        from_token = self.token_cache.require_token(from_symbol, from_chain)
        if not from_token.asset_id.startswith(NEAR_TOKEN_PREFIX):
            raise OccSwapError(
                f"Execute command only supports NEAR tokens ({NEAR_TOKEN_PREFIX}*). "
                "For other blockchains, use your native wallet to send tokens to the deposit address"
            )

        value = parse_amount(amount)
        smallest_unit = to_smallest_unit(value, from_token.decimals)

        rpc_url = MAINNET_RPC_URL
        if (env.network or "").lower() == SWAP_NETWORK:
            rpc_url = env.rpc_url or MAINNET_RPC_URL
        else:
            logger.warning(
                f"Configured network {env.network!r} ignored, swaps execute on {SWAP_NETWORK}"
            )

        output.line(f"Token: {from_token.symbol} ({from_token.asset_id})", output.GREY)
        output.line(
            f"Amount: {value} {from_token.symbol} = {smallest_unit} (smallest unit)\n",
            output.GREY,
        )

        async with self.client_factory() as client:
            output.line("Step 1: Getting unsigned transactions...", output.CYAN)
            response = await client.execute_swap(
                deposit_address=deposit_address,
                amount=smallest_unit,
                from_asset_id=from_token.asset_id,
                memo=memo,
            )
            if not response.transactions:
                raise OccSwapError("Swap API returned no transactions to sign")

            output.line(f"Token Contract: {response.token_contract}", output.GREY)
            output.line(f"Transactions: {len(response.transactions)}", output.GREY)
            if response.instructions:
                output.line(response.instructions, output.GREY)

            output.line("\nStep 2: Signing and sending transactions...", output.CYAN)
            tx_hashes = await self.executor.sign_and_send_multiple(
                env.account_address,
                env.private_key,
                response.transactions,
                network=SWAP_NETWORK,
                rpc_url=rpc_url,
            )

            output.line(f"{output.CHECK} Transactions sent successfully!\n", output.GREEN)
            for label, tx_hash in zip(_transaction_labels(len(tx_hashes)), tx_hashes):
                output.field(label, tx_hash, output.YELLOW)

            output.line("\nStep 3: Submitting to API...", output.CYAN)
            # The last transaction is the transfer into the deposit address
            await client.submit_deposit(
                deposit_address=deposit_address,
                transaction_hash=tx_hashes[-1],
                memo=memo,
            )

        output.line(f"{output.CHECK} Swap submitted successfully!", output.GREEN)
        output.line("\nCheck status with:", output.CYAN)
        output.line(f"occ-swap swap status --deposit-address {deposit_address}")
        return tx_hashes

    async def status(self, deposit_address: str, memo: Optional[str] = None) -> StatusResponse:
        """Show the status of a swap."""
        async with self.client_factory() as client:
            status = await client.get_status(deposit_address, memo)

        output.line("Swap Status", output.CYAN)
        output.rule()
        output.field("Status", status.status, output.status_color(status.status))
        if status.transaction_hash:
            output.field("Transaction Hash", status.transaction_hash, output.YELLOW)
        if status.timestamp:
            output.field("Timestamp", status.timestamp, output.GREY)
        if status.message:
            output.field("Message", status.message, output.GREY)
        output.rule()
        return status


def _transaction_labels(count: int) -> list[str]:
    if count == 2:
        return ["Storage Registration TX", "Token Transfer TX"]
    if count == 1:
        return ["Token Transfer TX"]
    return [f"Transaction {i} TX" for i in range(1, count + 1)]


def _format_epoch(epoch_seconds: int) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).isoformat()
