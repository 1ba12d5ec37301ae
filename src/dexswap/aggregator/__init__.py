"""Swap aggregator API: request signing, quotes and swap payloads."""

from dexswap.aggregator.auth import RequestSigner, iso_timestamp, sign
from dexswap.aggregator.client import AggregatorClient
from dexswap.aggregator.models import (
    QuoteRequest,
    QuoteResult,
    SwapPayload,
    SwapRequest,
    TransactionReceipt,
)

__all__ = [
    "AggregatorClient",
    "QuoteRequest",
    "QuoteResult",
    "RequestSigner",
    "SwapPayload",
    "SwapRequest",
    "TransactionReceipt",
    "iso_timestamp",
    "sign",
]
