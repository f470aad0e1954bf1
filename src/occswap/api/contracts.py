"""Swap API request and response contracts.

The API speaks camelCase JSON; fields are snake_case here with aliases.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from occswap.token_cache import Token


class ApiModel(BaseModel):
    """Base for API payloads: populate by field name or JSON alias."""

    model_config = ConfigDict(populate_by_name=True)


class TokensResponse(ApiModel):
    """Response from GET /swap/tokens."""

    tokens: list[Token] = Field(default_factory=list)
    cached: bool = False
    expires_at: Optional[int] = Field(None, alias="expiresAt")


class QuoteRequest(ApiModel):
    """Request body for POST /swap/quote. Amount is in smallest units."""

    from_token: str = Field(..., alias="fromToken", description="Source asset id")
    to_token: str = Field(..., alias="toToken", description="Destination asset id")
    amount: str = Field(..., description="Amount in smallest units")
    recipient_address: str = Field(..., alias="recipientAddress")
    refund_address: str = Field(..., alias="refundAddress")
    dry: bool = False


class QuoteResponse(ApiModel):
    """Quote details. Validity is enforced by the server until expires_at."""

    deposit_address: str = Field(..., alias="depositAddress")
    memo: Optional[str] = None
    expected_output: str = Field(..., alias="expectedOutput")
    exchange_rate: str = Field(..., alias="exchangeRate")
    fees: str
    expires_at: int = Field(..., alias="expiresAt")


class StatusResponse(ApiModel):
    """Response from GET /swap/status."""

    status: str
    transaction_hash: Optional[str] = Field(None, alias="transactionHash")
    timestamp: Optional[str] = None
    message: Optional[str] = None


class SubmitRequest(ApiModel):
    """Request body for POST /swap/submit."""

    deposit_address: str = Field(..., alias="depositAddress")
    transaction_hash: str = Field(..., alias="transactionHash")
    memo: Optional[str] = None


class SubmitResponse(ApiModel):
    """Response from POST /swap/submit."""

    success: bool
    message: str = ""


class ExecuteRequest(ApiModel):
    """Request body for POST /swap/execute."""

    deposit_address: str = Field(..., alias="depositAddress")
    amount: str = Field(..., description="Amount in smallest units")
    from_token: str = Field(..., alias="fromToken")
    memo: Optional[str] = None


class FunctionCallParams(ApiModel):
    """Arguments of a function call action. Gas and deposit are integer strings."""

    method_name: str = Field(..., alias="methodName")
    args: dict[str, Any] = Field(default_factory=dict)
    gas: str
    deposit: str


class TransactionAction(ApiModel):
    """One action of an unsigned transaction."""

    type: str
    params: FunctionCallParams


class UnsignedTransaction(ApiModel):
    """A transaction to be signed by the user and sent to receiver_id."""

    receiver_id: str = Field(..., alias="receiverId")
    actions: list[TransactionAction] = Field(default_factory=list)


class ExecuteResponse(ApiModel):
    """Unsigned transactions that move the user's funds to the deposit address."""

    transactions: list[UnsignedTransaction] = Field(default_factory=list)
    token_contract: str = Field(..., alias="tokenContract")
    blockchain: str
    instructions: str = ""
