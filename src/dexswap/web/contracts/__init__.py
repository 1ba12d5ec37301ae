"""Request and response contracts for the web layer."""

from dexswap.web.contracts.swaps import PrepareRequest, QuoteFormRequest, WorkflowResponse

__all__ = [
    "PrepareRequest",
    "QuoteFormRequest",
    "WorkflowResponse",
]
