"""Swap API client and contracts."""

from occswap.api.client import SwapApiClient, SwapApiError
from occswap.api.contracts import (
    ExecuteResponse,
    QuoteResponse,
    StatusResponse,
    SubmitResponse,
    TokensResponse,
    UnsignedTransaction,
)

__all__ = [
    "SwapApiClient",
    "SwapApiError",
    "ExecuteResponse",
    "QuoteResponse",
    "StatusResponse",
    "SubmitResponse",
    "TokensResponse",
    "UnsignedTransaction",
]
