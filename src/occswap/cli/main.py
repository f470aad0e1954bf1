"""Command line entry point."""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from occswap import __version__
from occswap.api.client import SwapApiClient
from occswap.cli import output
from occswap.cli.account import ConfigCommands, WalletCommands
from occswap.cli.swap import SwapCommands
from occswap.config import (
    SUPPORTED_BLOCKCHAINS,
    ConfigStore,
    MissingConfigurationError,
    Settings,
    UnsupportedBlockchainError,
    get_settings,
)
from occswap.errors import OccSwapError
from occswap.signing.base import SigningError
from occswap.signing.near import NearTransactionExecutor
from occswap.token_cache import TokenCacheStore, TokenNotFoundError
from occswap.wallets import WalletRegistry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="occ-swap",
        description="OpenClawChain Swap CLI - Token swaps on NEAR blockchain",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    groups = parser.add_subparsers(dest="group", required=True)

    # swap
    swap = groups.add_parser("swap", help="Token swap operations using NEAR Intents")
    swap_cmds = swap.add_subparsers(dest="command", required=True)

    tokens = swap_cmds.add_parser("tokens", help="List supported tokens for swapping")
    tokens.add_argument("-b", "--blockchain",
                        help="Filter by blockchain (near, ethereum, solana, etc.)")
    tokens.add_argument("-s", "--symbol", help="Filter by token symbol")
    tokens.add_argument("--refresh", action="store_true", help="Force refresh token cache")

    quote = swap_cmds.add_parser("quote", help="Get a swap quote")
    quote.add_argument("--from", dest="from_token", required=True,
                       help="From token (e.g., wrap.near, usdc)")
    quote.add_argument("--to", dest="to_token", required=True,
                       help="To token (e.g., usdc, usdt)")
    quote.add_argument("--amount", required=True,
                       help="Amount to swap (in token units, e.g., 1.5)")
    quote.add_argument("--from-chain", default="near", help="From blockchain")
    quote.add_argument("--to-chain", default="near", help="To blockchain")
    quote.add_argument("--recipient", help="Recipient address (defaults to your NEAR account)")
    quote.add_argument("--refund", help="Refund address (defaults to your NEAR account)")
    quote.add_argument("--dry", action="store_true",
                       help="Dry run mode (test with mock addresses)")

    execute = swap_cmds.add_parser("execute", help="Execute a swap (NEAR tokens only)")
    execute.add_argument("--deposit-address", required=True, help="Deposit address from quote")
    execute.add_argument("--amount", required=True, help="Amount to swap (in token units)")
    execute.add_argument("--from", dest="from_token", required=True, help="From token symbol")
    execute.add_argument("--from-chain", default="near", help="From blockchain")
    execute.add_argument("--memo", help="Optional memo")

    status = swap_cmds.add_parser("status", help="Check swap status")
    status.add_argument("--deposit-address", required=True, help="Deposit address")
    status.add_argument("--memo", help="Memo (for certain chains)")

    # wallet
    wallet = groups.add_parser("wallet", help="Manage the local wallet registry")
    wallet_cmds = wallet.add_subparsers(dest="command", required=True)

    wallet_list = wallet_cmds.add_parser("list", help="List registered wallets")
    wallet_list.add_argument("--chain", help="Only show wallets for this chain")

    wallet_add = wallet_cmds.add_parser("add", help="Register a wallet")
    wallet_add.add_argument("--chain", required=True, help="Chain (near, solana)")
    wallet_add.add_argument("--network", required=True,
                            help="Network (mainnet, testnet, devnet, mainnet-beta)")
    wallet_add.add_argument("--public-key", required=True, help="Public key")
    wallet_add.add_argument("--account-id", help="Named account (NEAR)")

    stage_key = wallet_cmds.add_parser(
        "stage-key", help="Write a private key to an owner-only staging file"
    )
    stage_key.add_argument("--chain", default="near", help="Chain the key belongs to")

    # config
    config = groups.add_parser("config", help="Show or change ~/.occ/.env")
    config_cmds = config.add_subparsers(dest="command", required=True)
    config_cmds.add_parser("show", help="Show configuration with secrets redacted")
    config_set = config_cmds.add_parser("set", help="Set a configuration value")
    config_set.add_argument("key", help="Key, e.g. NEAR_RPC_URL")
    config_set.add_argument("value", help="Value")

    return parser


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def run_command(args: argparse.Namespace, settings: Settings) -> None:
    """Dispatch parsed arguments to the command implementations."""
    config_store = ConfigStore(settings.env_file)

    if args.group == "swap":
        commands = SwapCommands(
            config_store=config_store,
            token_cache=TokenCacheStore(settings.tokens_file),
            client_factory=lambda: SwapApiClient(
                settings.api_base_url, api_key=config_store.load().api_key
            ),
            executor=NearTransactionExecutor(),
        )
        if args.command == "tokens":
            await commands.tokens(args.blockchain, args.symbol, args.refresh)
        elif args.command == "quote":
            await commands.quote(
                args.from_token,
                args.to_token,
                args.amount,
                from_chain=args.from_chain,
                to_chain=args.to_chain,
                recipient=args.recipient,
                refund=args.refund,
                dry=args.dry,
            )
        elif args.command == "execute":
            await commands.execute(
                args.deposit_address,
                args.amount,
                args.from_token,
                from_chain=args.from_chain,
                memo=args.memo,
            )
        elif args.command == "status":
            await commands.status(args.deposit_address, args.memo)

    elif args.group == "wallet":
        wallets = WalletCommands(WalletRegistry(settings.wallets_file), settings.env_temp_file)
        if args.command == "list":
            wallets.list_wallets(args.chain)
        elif args.command == "add":
            wallets.add(args.chain, args.network, args.public_key, args.account_id)
        elif args.command == "stage-key":
            wallets.stage_key(args.chain)

    elif args.group == "config":
        config_commands = ConfigCommands(config_store)
        if args.command == "show":
            config_commands.show()
        elif args.command == "set":
            config_commands.set_value(args.key, args.value)


def report_error(exc: OccSwapError, env_file) -> None:
    """Print an error and the hint that helps the user fix it."""
    output.error(str(exc))

    if isinstance(exc, UnsupportedBlockchainError):
        output.hint("Cross-chain swaps will be available in future releases.", output.GREY)
    elif isinstance(exc, MissingConfigurationError):
        output.hint(f"\nRequired environment variables in {env_file}:")
        for var in exc.missing_vars:
            output.hint(f"  {var}", output.WHITE)
    elif isinstance(exc, TokenNotFoundError):
        output.hint("Run: occ-swap swap tokens --refresh")
    elif isinstance(exc, SigningError) and exc.sent_hashes:
        output.hint("Transactions already sent before the failure:")
        for tx_hash in exc.sent_hashes:
            output.hint(f"  {tx_hash}", output.WHITE)


def main(argv: Optional[list[str]] = None, settings: Optional[Settings] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = settings or get_settings()
    configure_logging(args.debug or settings.debug)
    logger.debug(f"Supported blockchains: {', '.join(SUPPORTED_BLOCKCHAINS)}")

    try:
        asyncio.run(run_command(args, settings))
    except OccSwapError as e:
        report_error(e, settings.env_file)
        return 1
    except KeyboardInterrupt:
        output.error("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
