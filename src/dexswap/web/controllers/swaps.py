"""Swap form endpoints.

Three user-triggered actions (quote, prepare, send) drive the workflow one
step at a time. Failures come back as an explicit error state naming the
stage that failed.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from dexswap.aggregator.models import QuoteRequest
from dexswap.errors import SwapError
from dexswap.swap.workflow import SwapWorkflow
from dexswap.web.contracts.swaps import PrepareRequest, QuoteFormRequest, WorkflowResponse

router = APIRouter(prefix="/swap", tags=["swap"])


def get_workflow(request: Request) -> SwapWorkflow:
    return request.app.state.workflow


def _response(workflow: SwapWorkflow, error: Optional[SwapError] = None) -> WorkflowResponse:
    data = workflow.snapshot()
    if error is not None and workflow.error is not error:
        # Rejected before the workflow ran, e.g. an out-of-order action
        data["error"] = error.message
        data["stage"] = error.stage
    success = error is None
    if success and workflow.receipt is not None and workflow.receipt.status == "reverted":
        # Included in a block but the swap itself failed
        success = False
        data["error"] = f"Transaction {workflow.receipt.tx_hash} reverted"
        data["stage"] = "confirm"
    return WorkflowResponse(success=success, **data)


@router.post("/quote", response_model=WorkflowResponse)
async def quote(
    body: QuoteFormRequest,
    request: Request,
    workflow: SwapWorkflow = Depends(get_workflow),
) -> WorkflowResponse:
    """Fetch the estimated output amount. Read-only."""
    settings = request.app.state.settings
    quote_request = QuoteRequest(
        amount=body.amount.strip(),
        chain_id=settings.chain_id,
        from_token_address=body.from_token_address or settings.from_token_address,
        to_token_address=body.to_token_address or settings.to_token_address,
    )
    try:
        await workflow.fetch_quote(quote_request)
    except SwapError as e:
        return _response(workflow, e)
    return _response(workflow)


@router.post("/prepare", response_model=WorkflowResponse)
async def prepare(
    body: Optional[PrepareRequest] = None,
    workflow: SwapWorkflow = Depends(get_workflow),
) -> WorkflowResponse:
    """Fetch the ready-to-sign swap transaction. Read-only."""
    slippage = body.slippage if body else None
    try:
        await workflow.prepare_swap(slippage=slippage)
    except SwapError as e:
        return _response(workflow, e)
    return _response(workflow)


@router.post("/send", response_model=WorkflowResponse)
async def send(workflow: SwapWorkflow = Depends(get_workflow)) -> WorkflowResponse:
    """Sign, broadcast and wait for confirmation. Irreversible, never retried."""
    try:
        await workflow.send()
    except SwapError as e:
        return _response(workflow, e)
    return _response(workflow)


@router.get("/state", response_model=WorkflowResponse)
async def state(workflow: SwapWorkflow = Depends(get_workflow)) -> WorkflowResponse:
    """Current state of the attempt."""
    return _response(workflow)


@router.post("/reset", response_model=WorkflowResponse)
async def reset(workflow: SwapWorkflow = Depends(get_workflow)) -> WorkflowResponse:
    """Start a new attempt from idle."""
    try:
        workflow.reset()
    except SwapError as e:
        return _response(workflow, e)
    return _response(workflow)
