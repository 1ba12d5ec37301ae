"""Records passed between the quote, swap and submit stages."""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from dexswap.aggregator.tokens import (
    validate_address,
    validate_amount,
    validate_chain_id,
    validate_slippage,
)


@dataclass(frozen=True)
class QuoteRequest:
    """How much of ``to_token_address`` for ``amount`` of ``from_token_address``."""

    amount: str  # smallest unit, e.g. wei
    chain_id: str
    from_token_address: str
    to_token_address: str

    def validate(self) -> "QuoteRequest":
        validate_amount(self.amount)
        validate_chain_id(self.chain_id)
        validate_address(self.from_token_address, "source token address")
        validate_address(self.to_token_address, "destination token address")
        return self

    def to_params(self) -> list[tuple[str, str]]:
        """Query parameters in the fixed order the request path is built from."""
        return [
            ("amount", self.amount),
            ("chainId", str(self.chain_id)),
            ("fromTokenAddress", self.from_token_address),
            ("toTokenAddress", self.to_token_address),
        ]


@dataclass(frozen=True)
class SwapRequest(QuoteRequest):
    """A quote request plus the wallet that signs and the slippage tolerance."""

    user_wallet_address: str = ""
    slippage: Decimal = Decimal("0.03")

    @classmethod
    def from_quote_request(
        cls, request: QuoteRequest, user_wallet_address: str, slippage: Decimal
    ) -> "SwapRequest":
        return cls(
            amount=request.amount,
            chain_id=request.chain_id,
            from_token_address=request.from_token_address,
            to_token_address=request.to_token_address,
            user_wallet_address=user_wallet_address,
            slippage=slippage,
        )

    def validate(self) -> "SwapRequest":
        super().validate()
        validate_address(self.user_wallet_address, "wallet address")
        validate_slippage(self.slippage)
        return self

    def to_params(self) -> list[tuple[str, str]]:
        return super().to_params() + [
            ("userWalletAddress", self.user_wallet_address),
            ("slippage", format(Decimal(str(self.slippage)), "f")),
        ]


@dataclass
class QuoteResult:
    """A swap quote from the aggregator."""

    from_token_amount: int
    to_token_amount: int  # estimated destination amount, smallest unit
    estimate_gas_fee: Optional[int] = None
    dex_names: list[str] = field(default_factory=list)
    raw: dict = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "from_token_amount": str(self.from_token_amount),
            "to_token_amount": str(self.to_token_amount),
            "estimate_gas_fee": (
                str(self.estimate_gas_fee) if self.estimate_gas_fee is not None else None
            ),
            "dex_names": self.dex_names,
            "timestamp": self.timestamp,
        }


class SwapPayload(BaseModel):
    """Ready-to-sign transaction returned by the aggregator.

    Validated on arrival so a malformed response never reaches the signer.
    Frozen: only the gas fields are adjusted, and that happens on a copy
    when the transaction is built.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    to: str = Field(..., pattern=r"^0x[a-fA-F0-9]{40}$", description="Router/contract address")
    data: str = Field(..., pattern=r"^0x([a-fA-F0-9]{2})*$", description="Calldata (hex)")
    value: int = Field(default=0, ge=0, description="Native value in wei")
    gas: int = Field(..., gt=0, description="Suggested gas limit")
    gas_price: int = Field(..., alias="gasPrice", ge=0, description="Suggested gas price in wei")
    from_address: Optional[str] = Field(None, alias="from", description="Sender the tx was built for")
    min_receive_amount: Optional[int] = Field(
        None, alias="minReceiveAmount", ge=0, description="Minimum output with slippage"
    )

    def summary(self) -> dict:
        return {
            "to": self.to,
            "value": str(self.value),
            "gas": str(self.gas),
            "gas_price": str(self.gas_price),
            "min_receive_amount": (
                str(self.min_receive_amount) if self.min_receive_amount is not None else None
            ),
            "data_bytes": (len(self.data) - 2) // 2,
        }


@dataclass(frozen=True)
class TransactionReceipt:
    """Outcome of a submitted swap."""

    tx_hash: str
    status: str  # "success", "reverted" or "simulated"
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict:
        return {
            "tx_hash": self.tx_hash,
            "status": self.status,
            "block_number": self.block_number,
            "gas_used": self.gas_used,
        }
