"""``occ-swap wallet`` and ``occ-swap config`` commands."""

import logging
from getpass import getpass
from pathlib import Path
from typing import Optional

from occswap.cli import output
from occswap.config import ConfigStore, SwapConfig, stage_private_key
from occswap.errors import OccSwapError
from occswap.wallets import WalletInfo, WalletRegistry

logger = logging.getLogger(__name__)


class WalletCommands:
    """Implements the wallet command group."""

    def __init__(self, registry: WalletRegistry, staging_file: Path):
        self.registry = registry
        self.staging_file = staging_file

    def list_wallets(self, chain: Optional[str] = None) -> list[WalletInfo]:
        wallets = self.registry.by_chain(chain.lower()) if chain else self.registry.load()

        if not wallets:
            output.line("No wallets registered", output.YELLOW)
            return wallets

        output.line(f"Wallets ({len(wallets)}):", output.CYAN)
        output.rule()
        for wallet in wallets:
            print(
                output.paint(wallet.chain.ljust(10), output.BLUE)
                + output.paint(wallet.network.ljust(15), output.GREY)
                + output.paint(wallet.account_id or wallet.public_key, output.WHITE)
            )
        output.rule()
        return wallets

    def add(
        self,
        chain: str,
        network: str,
        public_key: str,
        account_id: Optional[str] = None,
    ) -> WalletInfo:
        wallet = WalletInfo(
            chain=chain.lower(),
            network=network.lower(),
            public_key=public_key,
            account_id=account_id,
        )
        replaced = self.registry.add(wallet)
        verb = "Updated" if replaced else "Registered"
        output.line(f"{output.CHECK} {verb} {wallet.chain} wallet on {wallet.network}", output.GREEN)
        return wallet

    def stage_key(self, chain: str, private_key: Optional[str] = None) -> Path:
        """Stage a private key in an owner-only file for the user to move into .env."""
        if private_key is None:
            private_key = getpass(f"{chain.upper()} private key: ")
        if not private_key.strip():
            raise OccSwapError("No private key given")

        path = stage_private_key(private_key.strip(), self.staging_file, chain=chain)
        output.line(f"{output.CHECK} Private key written to {path} (owner read/write only)", output.GREEN)
        output.line(f"{output.WARN}  Move the key into your .env file, then delete {path}", output.YELLOW)
        return path


class ConfigCommands:
    """Implements the config command group."""

    def __init__(self, store: ConfigStore):
        self.store = store

    def show(self) -> SwapConfig:
        config = self.store.load()
        values = config.get_safe_dict()

        output.line(f"Configuration ({self.store.path}):", output.CYAN)
        output.rule()
        if not values:
            output.line("(empty)", output.GREY)
        for key, value in values.items():
            output.field(key, value, output.GREY)
        output.rule()
        return config

    def set_value(self, key: str, value: str) -> SwapConfig:
        if not key or "=" in key or key.startswith("#"):
            raise OccSwapError(f"Invalid configuration key: {key!r}")

        config = self.store.set_value(key, value)
        output.line(f"{output.CHECK} {key.upper()} updated", output.GREEN)
        return config
