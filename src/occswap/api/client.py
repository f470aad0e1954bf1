"""HTTP client for the OpenClawChain swap API.

Endpoints:
- GET  /swap/tokens   token list
- POST /swap/quote    quote and deposit address
- GET  /swap/status   swap status for a deposit address
- POST /swap/submit   report the deposit transaction hash
- POST /swap/execute  unsigned transactions for the deposit

No retries: a failed call raises SwapApiError and the caller decides.
"""

import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from occswap.api.contracts import (
    ExecuteRequest,
    ExecuteResponse,
    QuoteRequest,
    QuoteResponse,
    StatusResponse,
    SubmitRequest,
    SubmitResponse,
    TokensResponse,
)
from occswap.errors import OccSwapError

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class SwapApiError(OccSwapError):
    """Raised for non-2xx responses and transport failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def _error_message(response: httpx.Response) -> str:
    """Prefer the server's ``error.message``, else describe the status."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or f"API request failed: {response.status_code}"

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"API request failed: {response.status_code}"


class SwapApiClient:
    """Async client for the swap API.

    Use as an async context manager so the underlying connection pool is
    closed::

        async with SwapApiClient(settings.api_base_url) as client:
            quote = await client.get_quote(...)
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key

        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "SwapApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        response_model: type[ResponseT],
        params: Optional[dict[str, str]] = None,
        body: Optional[BaseModel] = None,
    ) -> ResponseT:
        """Send one request and parse the JSON response into response_model."""
        json_body: Optional[dict[str, Any]] = None
        if body is not None:
            json_body = body.model_dump(by_alias=True, exclude_none=True)

        logger.debug(f"{method} {self.base_url}{endpoint} params={params}")
        try:
            response = await self._client.request(
                method, endpoint, params=params, json=json_body
            )
        except httpx.HTTPError as e:
            raise SwapApiError(f"API request failed: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.warning(f"{method} {endpoint} -> {response.status_code}: {message}")
            raise SwapApiError(message, status_code=response.status_code)

        try:
            return response_model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SwapApiError(f"Unexpected response from {endpoint}: {e}") from e

    async def list_tokens(self) -> TokensResponse:
        """Get the list of swappable tokens."""
        return await self._request("GET", "/swap/tokens", TokensResponse)

    async def get_quote(
        self,
        from_asset_id: str,
        to_asset_id: str,
        amount: str,
        recipient_address: str,
        refund_address: str,
        dry: bool = False,
    ) -> QuoteResponse:
        """Request a swap quote.

        Args:
            from_asset_id: Source asset id (e.g. "nep141:wrap.near")
            to_asset_id: Destination asset id
            amount: Amount in smallest units
            recipient_address: Where swapped funds are sent
            refund_address: Where funds go if the swap fails
            dry: Dry run with mock addresses

        Returns:
            Quote with deposit address
        """
        request = QuoteRequest(
            from_token=from_asset_id,
            to_token=to_asset_id,
            amount=amount,
            recipient_address=recipient_address,
            refund_address=refund_address,
            dry=dry,
        )
        return await self._request("POST", "/swap/quote", QuoteResponse, body=request)

    async def get_status(self, deposit_address: str, memo: Optional[str] = None) -> StatusResponse:
        """Get swap status for a deposit address."""
        params = {"depositAddress": deposit_address}
        if memo:
            params["memo"] = memo
        return await self._request("GET", "/swap/status", StatusResponse, params=params)

    async def submit_deposit(
        self,
        deposit_address: str,
        transaction_hash: str,
        memo: Optional[str] = None,
    ) -> SubmitResponse:
        """Report the hash of the transaction that funded the deposit address."""
        request = SubmitRequest(
            deposit_address=deposit_address,
            transaction_hash=transaction_hash,
            memo=memo,
        )
        return await self._request("POST", "/swap/submit", SubmitResponse, body=request)

    async def execute_swap(
        self,
        deposit_address: str,
        amount: str,
        from_asset_id: str,
        memo: Optional[str] = None,
    ) -> ExecuteResponse:
        """Get unsigned transactions that send amount to the deposit address."""
        request = ExecuteRequest(
            deposit_address=deposit_address,
            amount=amount,
            from_token=from_asset_id,
            memo=memo,
        )
        return await self._request("POST", "/swap/execute", ExecuteResponse, body=request)
