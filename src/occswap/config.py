"""Configuration for occ-swap.

Two layers:
- ``Settings``: process level settings (API URL, config directory, debug)
  loaded with pydantic-settings from ``OCC_*`` environment variables.
- ``SwapConfig``: the user's ``~/.occ/.env`` file (API key, per-chain
  accounts and keys, recipient/refund overrides, network, RPC URL),
  read and written through an explicit ``ConfigStore``.
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from occswap.errors import ConfigError, OccSwapError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.openclawchain.org/api/v1"


class Settings(BaseSettings):
    """Process settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="OCC_",
        extra="ignore",
    )

    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL, description="Swap API base URL"
    )
    config_dir: Path = Field(
        default_factory=lambda: Path.home() / ".occ",
        description="Directory holding .env, tokens.json and wallets.json",
    )
    debug: bool = Field(default=False, description="Enable debug logging")

    @property
    def env_file(self) -> Path:
        return self.config_dir / ".env"

    @property
    def env_temp_file(self) -> Path:
        return self.config_dir / ".env.temp"

    @property
    def tokens_file(self) -> Path:
        return self.config_dir / "tokens.json"

    @property
    def wallets_file(self) -> Path:
        return self.config_dir / "wallets.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# ======================
# User configuration file
# ======================

# File key -> SwapConfig field
CONFIG_KEYS: dict[str, str] = {
    "OCC_API_KEY": "api_key",
    **{
        key: key.lower()
        for key in (
            "SOLANA_PUBLIC_KEY",
            "SOLANA_PRIVATE_KEY",
            "SOLANA_ACCOUNT_ADDRESS",
            "SOLANA_RECIPIENT_ADDRESS",
            "SOLANA_REFUND_ADDRESS",
            "SOLANA_NETWORK",
            "SOLANA_RPC_URL",
            "NEAR_PUBLIC_KEY",
            "NEAR_ACCOUNT_ADDRESS",
            "NEAR_PRIVATE_KEY",
            "NEAR_MAINNET_ACCOUNT_ADDRESS",
            "NEAR_MAINNET_PRIVATE_KEY",
            "NEAR_RECIPIENT_ADDRESS",
            "NEAR_REFUND_ADDRESS",
            "NEAR_NETWORK",
            "NEAR_RPC_URL",
            "ETHEREUM_ACCOUNT_ADDRESS",
            "ETHEREUM_PRIVATE_KEY",
            "ETHEREUM_RECIPIENT_ADDRESS",
            "ETHEREUM_REFUND_ADDRESS",
            "ETHEREUM_NETWORK",
            "ETHEREUM_RPC_URL",
        )
    },
}

# Any key with one of these suffixes is redacted for display
SECRET_KEY_SUFFIXES = ("_PRIVATE_KEY", "_API_KEY")


def is_secret_key(key: str) -> bool:
    return key.upper().endswith(SECRET_KEY_SUFFIXES)


class SwapConfig(BaseModel):
    """Typed view of the user's configuration file.

    Keys that are not known fields are kept lowercased in ``extras`` so
    settings for future chains survive a load/save cycle.
    """

    api_key: Optional[str] = None

    # Solana
    solana_public_key: Optional[str] = None
    solana_private_key: Optional[str] = None
    solana_account_address: Optional[str] = None
    solana_recipient_address: Optional[str] = None
    solana_refund_address: Optional[str] = None
    solana_network: Optional[str] = None
    solana_rpc_url: Optional[str] = None

    # NEAR
    near_public_key: Optional[str] = None
    near_account_address: Optional[str] = None
    near_private_key: Optional[str] = None
    near_mainnet_account_address: Optional[str] = None
    near_mainnet_private_key: Optional[str] = None
    near_recipient_address: Optional[str] = None
    near_refund_address: Optional[str] = None
    near_network: Optional[str] = None
    near_rpc_url: Optional[str] = None

    # Ethereum
    ethereum_account_address: Optional[str] = None
    ethereum_private_key: Optional[str] = None
    ethereum_recipient_address: Optional[str] = None
    ethereum_refund_address: Optional[str] = None
    ethereum_network: Optional[str] = None
    ethereum_rpc_url: Optional[str] = None

    extras: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_values(cls, values: dict[str, Optional[str]]) -> "SwapConfig":
        """Build a config from raw ``KEY=VALUE`` pairs."""
        known: dict[str, str] = {}
        extras: dict[str, str] = {}

        for key, value in values.items():
            if value is None:
                continue
            name = CONFIG_KEYS.get(key.strip().upper())
            if name:
                known[name] = value.strip()
            else:
                extras[key.strip().lower()] = value.strip()

        # Account address doubles as the public key for named NEAR accounts
        if "near_public_key" not in known and "near_account_address" in known:
            known["near_public_key"] = known["near_account_address"]

        return cls(**known, extras=extras)

    def get(self, key: str) -> Optional[str]:
        """Case-insensitive lookup over known fields and extras."""
        name = CONFIG_KEYS.get(key.upper())
        if name:
            return getattr(self, name)
        return self.extras.get(key.lower())

    def to_values(self) -> dict[str, str]:
        """Flatten back to ``KEY=VALUE`` pairs, known keys first."""
        values: dict[str, str] = {}
        for key, name in CONFIG_KEYS.items():
            value = getattr(self, name)
            if value:
                values[key] = value
        for key, value in self.extras.items():
            if key.upper() not in values:
                values[key.upper()] = value
        return values

    def get_safe_dict(self) -> dict[str, str]:
        """Return configured values with secrets redacted."""
        return {
            key: "***" if is_secret_key(key) else value
            for key, value in self.to_values().items()
        }


class ConfigStore:
    """Reads and writes the user's ``KEY=VALUE`` configuration file."""

    HEADER = [
        "# OpenClawChain Configuration",
        "# Generated by occ-swap",
        "",
    ]

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> SwapConfig:
        """Load configuration, empty if the file does not exist."""
        if not self.path.exists():
            return SwapConfig()
        try:
            values = dotenv_values(self.path, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read configuration {self.path}: {e}") from e
        return SwapConfig.from_values(values)

    def save(self, config: SwapConfig) -> None:
        """Write the full configuration, replacing the file."""
        lines = list(self.HEADER)
        lines.extend(f"{key}={value}" for key, value in config.to_values().items())
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot write configuration {self.path}: {e}") from e
        logger.debug(f"Saved configuration to {self.path}")

    def update(self, **changes: Optional[str]) -> SwapConfig:
        """Merge field updates into the stored configuration."""
        unknown = set(changes) - set(SwapConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        current = self.load()
        updated = current.model_copy(update=changes)
        self.save(updated)
        return updated

    def set_value(self, key: str, value: str) -> SwapConfig:
        """Set a single raw ``KEY`` (known or not)."""
        config = self.load()
        name = CONFIG_KEYS.get(key.upper())
        if name:
            config = config.model_copy(update={name: value})
        else:
            extras = dict(config.extras)
            extras[key.lower()] = value
            config = config.model_copy(update={"extras": extras})
        self.save(config)
        return config


def stage_private_key(private_key: str, path: Path, chain: str = "SOLANA") -> Path:
    """Write a freshly obtained private key to an owner-only staging file.

    The user moves the line into their ``.env`` and deletes the file.
    """
    key_name = f"{chain.upper()}_PRIVATE_KEY"
    content = "\n".join([
        f"# {chain.upper()} PRIVATE KEY",
        "# KEEP THIS SECURE - DO NOT SHARE",
        "# Copy this key to your .env file and then DELETE this file",
        "",
        f"{key_name}={private_key}",
        "",
        "# Instructions:",
        "# 1. Copy the line above",
        f"# 2. Add it to {path.parent / '.env'}",
        "# 3. Delete this file immediately",
    ])

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content + "\n")
        # O_CREAT mode is ignored for files that already existed
        os.chmod(path, 0o600)
    except OSError as e:
        raise ConfigError(f"Cannot write staging file {path}: {e}") from e

    logger.info(f"Staged {key_name} in {path}")
    return path


# ======================
# Blockchain gating
# ======================

SUPPORTED_BLOCKCHAINS: tuple[str, ...] = ("near",)

ENV_VAR_SUFFIXES = (
    "ACCOUNT_ADDRESS",
    "PRIVATE_KEY",
    "RECIPIENT_ADDRESS",
    "REFUND_ADDRESS",
    "NETWORK",
    "RPC_URL",
)


class UnsupportedBlockchainError(OccSwapError):
    """Raised when a swap names a chain outside SUPPORTED_BLOCKCHAINS."""

    def __init__(self, blockchain: str):
        self.blockchain = blockchain
        super().__init__(
            f'Blockchain "{blockchain}" is not currently supported. '
            f"Currently supported blockchains: {', '.join(SUPPORTED_BLOCKCHAINS)}"
        )


class MissingConfigurationError(OccSwapError):
    """Raised when required settings for a chain are absent."""

    def __init__(self, blockchain: str, missing_vars: list[str]):
        self.blockchain = blockchain
        self.missing_vars = missing_vars
        super().__init__(
            f"Missing {blockchain.upper()} configuration: {', '.join(missing_vars)}"
        )


@dataclass
class BlockchainEnv:
    """Per-chain settings resolved from the configuration."""
    account_address: Optional[str] = None
    private_key: Optional[str] = None
    recipient_address: Optional[str] = None
    refund_address: Optional[str] = None
    network: Optional[str] = None
    rpc_url: Optional[str] = None
    public_key: Optional[str] = None

    def default_address(self) -> Optional[str]:
        """Address used when no recipient/refund is configured."""
        return self.account_address or self.public_key


@dataclass
class BlockchainValidation:
    """Result of checking a chain's configuration."""
    valid: bool
    blockchain: str
    missing_vars: list[str] = field(default_factory=list)
    message: str = ""


def is_supported_blockchain(blockchain: str) -> bool:
    """Check if a blockchain is supported for swaps."""
    return blockchain.lower() in SUPPORTED_BLOCKCHAINS


def ensure_supported_blockchain(blockchain: str) -> str:
    """Return the normalized chain name or raise UnsupportedBlockchainError."""
    normalized = blockchain.lower()
    if not is_supported_blockchain(normalized):
        raise UnsupportedBlockchainError(normalized)
    return normalized


def required_env_vars(blockchain: str) -> list[str]:
    """Get required configuration key names for a blockchain."""
    prefix = blockchain.upper()
    return [f"{prefix}_{suffix}" for suffix in ENV_VAR_SUFFIXES]


def get_blockchain_env(blockchain: str, config: SwapConfig) -> BlockchainEnv:
    """Resolve a chain's settings from the configuration.

    NEAR mainnet credentials take precedence over the legacy
    ``NEAR_ACCOUNT_ADDRESS``/``NEAR_PRIVATE_KEY`` pair.
    """
    prefix = blockchain.upper()

    if prefix == "NEAR":
        return BlockchainEnv(
            account_address=config.near_mainnet_account_address or config.near_account_address,
            private_key=config.near_mainnet_private_key or config.near_private_key,
            recipient_address=config.near_recipient_address,
            refund_address=config.near_refund_address,
            network=config.near_network,
            rpc_url=config.near_rpc_url,
            public_key=config.near_public_key,
        )

    return BlockchainEnv(
        account_address=config.get(f"{prefix}_ACCOUNT_ADDRESS"),
        private_key=config.get(f"{prefix}_PRIVATE_KEY"),
        recipient_address=config.get(f"{prefix}_RECIPIENT_ADDRESS"),
        refund_address=config.get(f"{prefix}_REFUND_ADDRESS"),
        network=config.get(f"{prefix}_NETWORK"),
        rpc_url=config.get(f"{prefix}_RPC_URL"),
        public_key=config.get(f"{prefix}_PUBLIC_KEY"),
    )


def validate_blockchain_env(blockchain: str, config: SwapConfig) -> BlockchainValidation:
    """Check that every required setting for a chain is present."""
    env = get_blockchain_env(blockchain, config)
    prefix = blockchain.upper()

    missing = [
        f"{prefix}_{suffix}"
        for suffix, value in zip(ENV_VAR_SUFFIXES, (
            env.account_address,
            env.private_key,
            env.recipient_address,
            env.refund_address,
            env.network,
            env.rpc_url,
        ))
        if not value
    ]
    valid = not missing

    return BlockchainValidation(
        valid=valid,
        blockchain=blockchain,
        missing_vars=missing,
        message=(
            f"{prefix} environment configured correctly"
            if valid
            else f"Missing {prefix} configuration"
        ),
    )


def validate_cross_chain_env(
    from_chain: str, to_chain: str, config: SwapConfig
) -> tuple[bool, BlockchainValidation, BlockchainValidation]:
    """Validate both sides of a swap."""
    from_result = validate_blockchain_env(from_chain, config)
    to_result = validate_blockchain_env(to_chain, config)
    return from_result.valid and to_result.valid, from_result, to_result
