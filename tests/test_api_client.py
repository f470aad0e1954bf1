"""Tests for the swap API client."""

import httpx
import pytest

from conftest import API_BASE_URL, EXECUTE_RESPONSE
from occswap.api.client import SwapApiClient, SwapApiError


def make_client(fake_api, api_key=None) -> SwapApiClient:
    return SwapApiClient(API_BASE_URL, api_key=api_key, transport=fake_api.transport)


class TestEndpoints:
    """Tests for each API operation."""

    @pytest.mark.asyncio
    async def test_list_tokens(self, fake_api):
        fake_api.respond("GET", "/swap/tokens", json_body={
            "tokens": [{
                "symbol": "wNEAR", "name": "Wrapped NEAR", "blockchain": "near",
                "decimals": 24, "assetId": "nep141:wrap.near", "price": 3.1,
            }],
            "cached": True,
            "expiresAt": 1700000000,
        })

        async with make_client(fake_api) as client:
            response = await client.list_tokens()

        assert response.cached is True
        assert response.expires_at == 1700000000
        assert response.tokens[0].asset_id == "nep141:wrap.near"
        assert str(fake_api.requests[0].url) == f"{API_BASE_URL}/swap/tokens"

    @pytest.mark.asyncio
    async def test_get_quote_sends_camel_case_body(self, fake_api):
        fake_api.respond("POST", "/swap/quote", json_body={
            "depositAddress": "deposit.near",
            "expectedOutput": "3.05",
            "exchangeRate": "3.05",
            "fees": "0.1%",
            "expiresAt": 1700000600,
        })

        async with make_client(fake_api) as client:
            quote = await client.get_quote(
                "nep141:wrap.near", "nep141:usdt.tether-token.near",
                "1000000000000000000000000", "recipient.near", "refund.near",
            )

        assert quote.deposit_address == "deposit.near"
        assert quote.memo is None
        assert fake_api.requests[0].headers["Content-Type"] == "application/json"
        assert fake_api.body() == {
            "fromToken": "nep141:wrap.near",
            "toToken": "nep141:usdt.tether-token.near",
            "amount": "1000000000000000000000000",
            "recipientAddress": "recipient.near",
            "refundAddress": "refund.near",
            "dry": False,
        }

    @pytest.mark.asyncio
    async def test_get_status_query_params(self, fake_api):
        fake_api.respond("GET", "/swap/status", json_body={
            "status": "PROCESSING", "transactionHash": "abc",
        })

        async with make_client(fake_api) as client:
            status = await client.get_status("deposit.near", memo="42")

        assert status.status == "PROCESSING"
        assert status.transaction_hash == "abc"
        params = fake_api.requests[0].url.params
        assert params["depositAddress"] == "deposit.near"
        assert params["memo"] == "42"

    @pytest.mark.asyncio
    async def test_get_status_without_memo(self, fake_api):
        fake_api.respond("GET", "/swap/status", json_body={"status": "SUCCESS"})

        async with make_client(fake_api) as client:
            await client.get_status("deposit.near")

        assert "memo" not in fake_api.requests[0].url.params

    @pytest.mark.asyncio
    async def test_submit_deposit_omits_empty_memo(self, fake_api):
        fake_api.respond("POST", "/swap/submit", json_body={"success": True, "message": "ok"})

        async with make_client(fake_api) as client:
            response = await client.submit_deposit("deposit.near", "tx2")

        assert response.success is True
        assert fake_api.body() == {"depositAddress": "deposit.near", "transactionHash": "tx2"}

    @pytest.mark.asyncio
    async def test_execute_swap(self, fake_api):
        fake_api.respond("POST", "/swap/execute", json_body=EXECUTE_RESPONSE)

        async with make_client(fake_api) as client:
            response = await client.execute_swap(
                "deposit.near", "1000000", "nep141:usdt.tether-token.near", memo="7"
            )

        assert len(response.transactions) == 2
        first = response.transactions[0]
        assert first.receiver_id == "usdt.tether-token.near"
        assert first.actions[0].params.method_name == "storage_deposit"
        assert response.token_contract == "usdt.tether-token.near"
        assert fake_api.body() == {
            "depositAddress": "deposit.near",
            "amount": "1000000",
            "fromToken": "nep141:usdt.tether-token.near",
            "memo": "7",
        }

    @pytest.mark.asyncio
    async def test_api_key_header(self, fake_api):
        fake_api.respond("GET", "/swap/tokens", json_body={"tokens": []})

        async with make_client(fake_api, api_key="secret") as client:
            await client.list_tokens()

        assert fake_api.requests[0].headers["X-API-Key"] == "secret"


class TestErrors:
    """Tests for error normalization."""

    @pytest.mark.asyncio
    async def test_server_error_message(self, fake_api):
        fake_api.respond("POST", "/swap/quote", status_code=400,
                         json_body={"error": {"message": "Amount too small"}})

        async with make_client(fake_api) as client:
            with pytest.raises(SwapApiError, match="Amount too small") as exc_info:
                await client.get_quote("a", "b", "1", "r", "f")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_json_without_message(self, fake_api):
        fake_api.respond("GET", "/swap/tokens", status_code=503, json_body={"detail": "busy"})

        async with make_client(fake_api) as client:
            with pytest.raises(SwapApiError, match="API request failed: 503"):
                await client.list_tokens()

    @pytest.mark.asyncio
    async def test_unparsable_body_uses_reason_phrase(self, fake_api):
        fake_api.respond("GET", "/swap/tokens", status_code=502, content=b"<html>bad gateway</html>")

        async with make_client(fake_api) as client:
            with pytest.raises(SwapApiError, match="Bad Gateway"):
                await client.list_tokens()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = SwapApiClient(API_BASE_URL, transport=httpx.MockTransport(handler))
        async with client:
            with pytest.raises(SwapApiError, match="connection refused"):
                await client.list_tokens()

    @pytest.mark.asyncio
    async def test_unexpected_response_shape(self, fake_api):
        fake_api.respond("POST", "/swap/quote", json_body={"unexpected": True})

        async with make_client(fake_api) as client:
            with pytest.raises(SwapApiError, match="Unexpected response"):
                await client.get_quote("a", "b", "1", "r", "f")
