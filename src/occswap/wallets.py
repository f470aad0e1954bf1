"""Registry of the user's wallets in ``~/.occ/wallets.json``.

Only public information is stored: chain, network, public key and the
named account id for NEAR. Private keys stay in ``.env``.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from occswap.errors import ConfigError

logger = logging.getLogger(__name__)


class WalletInfo(BaseModel):
    """A registered wallet."""

    model_config = ConfigDict(populate_by_name=True)

    chain: str
    network: str
    public_key: str = Field(..., alias="publicKey")
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        alias="createdAt",
    )
    account_id: Optional[str] = Field(None, alias="accountId")

    def same_wallet(self, other: "WalletInfo") -> bool:
        return (
            self.chain == other.chain
            and self.network == other.network
            and self.public_key == other.public_key
        )


class WalletsFile(BaseModel):
    wallets: list[WalletInfo] = Field(default_factory=list)


class WalletRegistry:
    """File-backed wallet list, upserted on (chain, network, public key)."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[WalletInfo]:
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return WalletsFile.model_validate(data).wallets
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to load wallets registry {self.path}: {e}")
            return []

    def save(self, wallets: list[WalletInfo]) -> None:
        data = WalletsFile(wallets=wallets).model_dump_json(
            by_alias=True, exclude_none=True, indent=2
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(data, encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot write wallets registry {self.path}: {e}") from e

    def add(self, wallet: WalletInfo) -> bool:
        """Add or replace a wallet.

        Returns:
            True if an existing entry was replaced
        """
        wallets = self.load()

        for index, existing in enumerate(wallets):
            if existing.same_wallet(wallet):
                wallets[index] = wallet
                self.save(wallets)
                logger.info(f"Updated {wallet.chain}/{wallet.network} wallet {wallet.public_key}")
                return True

        wallets.append(wallet)
        self.save(wallets)
        logger.info(f"Registered {wallet.chain}/{wallet.network} wallet {wallet.public_key}")
        return False

    def by_chain(self, chain: str) -> list[WalletInfo]:
        return [w for w in self.load() if w.chain == chain]

    def by_chain_and_network(self, chain: str, network: str) -> Optional[WalletInfo]:
        return next(
            (w for w in self.load() if w.chain == chain and w.network == network),
            None,
        )
