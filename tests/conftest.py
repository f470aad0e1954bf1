"""Pytest configuration and fixtures."""

import json
import os
from types import SimpleNamespace
from typing import Optional

import httpx
import pytest

# Set test environment
os.environ["OCC_DEBUG"] = "false"
os.environ.pop("OCC_API_BASE_URL", None)
os.environ["NO_COLOR"] = "1"

from occswap.config import ConfigStore, Settings
from occswap.token_cache import Token, TokenCacheStore

API_BASE_URL = "https://api.test/api/v1"

NEAR_CONFIG = {
    "OCC_API_KEY": "test-api-key",
    "NEAR_ACCOUNT_ADDRESS": "alice.near",
    "NEAR_PRIVATE_KEY": "ed25519:legacykey",
    "NEAR_MAINNET_ACCOUNT_ADDRESS": "alice-main.near",
    "NEAR_MAINNET_PRIVATE_KEY": "ed25519:mainnetkey",
    "NEAR_RECIPIENT_ADDRESS": "recipient.near",
    "NEAR_REFUND_ADDRESS": "refund.near",
    "NEAR_NETWORK": "mainnet",
    "NEAR_RPC_URL": "https://rpc.example.near.org",
}


def make_token(symbol: str, blockchain: str = "near", decimals: int = 6,
               asset_id: Optional[str] = None, name: Optional[str] = None) -> Token:
    return Token(
        symbol=symbol,
        name=name or f"{symbol} token",
        blockchain=blockchain,
        decimals=decimals,
        asset_id=asset_id or f"nep141:{symbol.lower()}.{blockchain}",
    )


@pytest.fixture
def sample_tokens() -> list[Token]:
    return [
        make_token("wNEAR", decimals=24, asset_id="nep141:wrap.near", name="Wrapped NEAR"),
        make_token("USDC", blockchain="ethereum", asset_id="nep141:eth-usdc.omft.near"),
        make_token("USDC", asset_id="nep141:17208628f84f5d6ad33f0da3bbbeb27ffcb398eac501a31bd6ad2011e36133a1"),
        make_token("USDT", asset_id="nep141:usdt.tether-token.near"),
        make_token("SOL", blockchain="solana", decimals=9, asset_id="sol:native"),
    ]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(config_dir=tmp_path / ".occ", api_base_url=API_BASE_URL)


@pytest.fixture
def token_cache(settings) -> TokenCacheStore:
    return TokenCacheStore(settings.tokens_file)


@pytest.fixture
def config_store(settings) -> ConfigStore:
    return ConfigStore(settings.env_file)


@pytest.fixture
def near_config(config_store) -> ConfigStore:
    """Config store with a complete NEAR configuration on disk."""
    config_store.path.parent.mkdir(parents=True, exist_ok=True)
    config_store.path.write_text(
        "\n".join(f"{key}={value}" for key, value in NEAR_CONFIG.items()) + "\n",
        encoding="utf-8",
    )
    return config_store


class FakeApi:
    """Records requests and answers them from canned (method, path) responses."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict[tuple[str, str], httpx.Response] = {}

    def respond(self, method: str, path: str, status_code: int = 200, json_body=None, **kwargs):
        if json_body is not None:
            kwargs["json"] = json_body
        self.responses[(method, path)] = httpx.Response(status_code, **kwargs)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.replace("/api/v1", "", 1)
        response = self.responses.get((request.method, path))
        if response is None:
            return httpx.Response(404, json={"error": {"message": f"No route {path}"}})
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


class FakeNearAccount:
    """Stands in for a py-near Account."""

    def __init__(self, fail_on_call: Optional[int] = None):
        self.fail_on_call = fail_on_call
        self.started = False
        self.calls: list[dict] = []

    async def startup(self):
        self.started = True

    async def function_call(self, contract_id, method_name, args, gas, amount):
        self.calls.append({
            "contract_id": contract_id,
            "method_name": method_name,
            "args": args,
            "gas": gas,
            "amount": amount,
        })
        if len(self.calls) == self.fail_on_call:
            raise RuntimeError("RPC rejected transaction")
        return SimpleNamespace(transaction=SimpleNamespace(hash=f"tx{len(self.calls)}"))


EXECUTE_RESPONSE = {
    "transactions": [
        {
            "receiverId": "usdt.tether-token.near",
            "actions": [{
                "type": "FunctionCall",
                "params": {
                    "methodName": "storage_deposit",
                    "args": {"account_id": "deposit.near", "registration_only": True},
                    "gas": "30000000000000",
                    "deposit": "1250000000000000000000",
                },
            }],
        },
        {
            "receiverId": "usdt.tether-token.near",
            "actions": [{
                "type": "FunctionCall",
                "params": {
                    "methodName": "ft_transfer",
                    "args": {"receiver_id": "deposit.near", "amount": "1000000"},
                    "gas": "30000000000000",
                    "deposit": "1",
                },
            }],
        },
    ],
    "tokenContract": "usdt.tether-token.near",
    "blockchain": "near",
    "instructions": "Sign both transactions",
}
