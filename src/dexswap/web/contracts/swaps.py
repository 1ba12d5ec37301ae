"""Swap form request and response contracts."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class QuoteFormRequest(BaseModel):
    """Amount entered in the form plus optional token overrides."""

    amount: str = Field(..., description="Amount in the source token's smallest unit")
    from_token_address: Optional[str] = Field(None, description="Source token (default from config)")
    to_token_address: Optional[str] = Field(None, description="Destination token (default from config)")


class PrepareRequest(BaseModel):
    """Optional slippage override for the swap payload."""

    slippage: Optional[Decimal] = Field(
        None,
        description="Slippage tolerance as a fraction (0.03 = 3%); default from config",
    )


class WorkflowResponse(BaseModel):
    """Current workflow state after an action."""

    success: bool = Field(..., description="Whether the action succeeded")
    state: str = Field(..., description="Workflow state")
    history: list[str] = Field(default_factory=list, description="States visited this attempt")
    quote: Optional[dict] = Field(None, description="Estimated output amount and route info")
    payload: Optional[dict] = Field(None, description="Summary of the prepared transaction")
    tx_hash: Optional[str] = Field(None, description="Transaction hash once sent")
    receipt: Optional[dict] = Field(None, description="Confirmation receipt")
    error: Optional[str] = Field(None, description="Error message if the action failed")
    stage: Optional[str] = Field(None, description="Stage that failed")
