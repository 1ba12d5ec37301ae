"""Swap workflow state machine.

Flow:
1. fetch_quote:  IDLE -> QUOTE_FETCHED
2. prepare_swap: QUOTE_FETCHED -> SWAP_PREPARED
3. send:         SWAP_PREPARED -> SUBMITTED -> CONFIRMED

Only one action runs at a time; a second one is rejected while the first
is in flight. Any failure moves the workflow to ERRORED. CONFIRMED and ERRORED are
terminal for the attempt; reset() starts over from IDLE.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from enum import Enum
from typing import Optional

from dexswap.aggregator.client import AggregatorClient
from dexswap.aggregator.models import (
    QuoteRequest,
    QuoteResult,
    SwapPayload,
    SwapRequest,
    TransactionReceipt,
)
from dexswap.errors import InvalidTransition, SwapError
from dexswap.swap.submitter import TransactionSubmitter

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    """Swap workflow states."""
    IDLE = "idle"
    QUOTE_FETCHED = "quote_fetched"
    SWAP_PREPARED = "swap_prepared"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    ERRORED = "errored"


TERMINAL_STATES = frozenset({WorkflowState.CONFIRMED, WorkflowState.ERRORED})

# Allowed forward transitions; ERRORED is reachable from every non-terminal state
TRANSITIONS = {
    WorkflowState.IDLE: {WorkflowState.QUOTE_FETCHED},
    WorkflowState.QUOTE_FETCHED: {WorkflowState.SWAP_PREPARED},
    WorkflowState.SWAP_PREPARED: {WorkflowState.SUBMITTED},
    WorkflowState.SUBMITTED: {WorkflowState.CONFIRMED},
    WorkflowState.CONFIRMED: set(),
    WorkflowState.ERRORED: set(),
}


class SwapWorkflow:
    """Drives one quote -> prepare -> send attempt at a time."""

    def __init__(
        self,
        client: AggregatorClient,
        submitter: TransactionSubmitter,
        wallet_address: str,
        default_slippage: Decimal = Decimal("0.03"),
    ):
        self.client = client
        self.submitter = submitter
        self.wallet_address = wallet_address
        self.default_slippage = default_slippage
        self._lock = asyncio.Lock()
        self._reset_attempt()

    @classmethod
    def from_settings(cls, settings, client=None, submitter=None) -> "SwapWorkflow":
        return cls(
            client=client or AggregatorClient.from_settings(settings),
            submitter=submitter or TransactionSubmitter.from_settings(settings),
            wallet_address=settings.user_wallet_address,
            default_slippage=settings.default_slippage,
        )

    def _reset_attempt(self) -> None:
        self.state = WorkflowState.IDLE
        self.history: list[WorkflowState] = [WorkflowState.IDLE]
        self.quote_request: Optional[QuoteRequest] = None
        self.quote: Optional[QuoteResult] = None
        self.swap_request: Optional[SwapRequest] = None
        self.payload: Optional[SwapPayload] = None
        self.payload_summary: Optional[dict] = None
        self.tx_hash: Optional[str] = None
        self.receipt: Optional[TransactionReceipt] = None
        self.error: Optional[SwapError] = None
        self.failed_stage: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    def reset(self) -> None:
        """Discard the current attempt and return to IDLE."""
        if self.in_progress:
            raise InvalidTransition("Cannot reset while an action is in progress", stage="reset")
        logger.debug(f"Workflow reset from {self.state.value}")
        self._reset_attempt()

    def _require(self, expected: WorkflowState, action: str) -> None:
        if self.state != expected:
            raise InvalidTransition(
                f"Cannot {action} while {self.state.value}; expected {expected.value}",
                stage=action,
            )

    @asynccontextmanager
    async def _step(self, expected: WorkflowState, action: str):
        """Run one action exclusively. A second action while one is running is rejected."""
        if self.in_progress:
            raise InvalidTransition(
                f"Cannot {action} while another action is in progress", stage=action
            )
        async with self._lock:
            self._require(expected, action)
            yield

    def _transition(self, new_state: WorkflowState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise InvalidTransition(f"Illegal transition {self.state.value} -> {new_state.value}")
        logger.info(f"Workflow {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def _fail(self, error: SwapError, stage: str) -> None:
        logger.error(f"Workflow failed during {stage}: {error.message}")
        self.error = error
        self.failed_stage = stage
        self.state = WorkflowState.ERRORED
        self.history.append(WorkflowState.ERRORED)

    async def fetch_quote(self, request: QuoteRequest) -> QuoteResult:
        async with self._step(WorkflowState.IDLE, "quote"):
            try:
                quote = await self.client.get_quote(request)
            except SwapError as e:
                self._fail(e, "quote")
                raise

            self._transition(WorkflowState.QUOTE_FETCHED)
            self.quote_request = request
            self.quote = quote
            return quote

    async def prepare_swap(self, slippage: Optional[Decimal] = None) -> SwapPayload:
        async with self._step(WorkflowState.QUOTE_FETCHED, "prepare"):
            request = SwapRequest.from_quote_request(
                self.quote_request,
                user_wallet_address=self.wallet_address,
                slippage=self.default_slippage if slippage is None else slippage,
            )
            try:
                payload = await self.client.get_swap(request)
            except SwapError as e:
                self._fail(e, "prepare")
                raise

            self._transition(WorkflowState.SWAP_PREPARED)
            self.swap_request = request
            self.payload = payload
            self.payload_summary = payload.summary()
            return payload

    async def send(self) -> TransactionReceipt:
        async with self._step(WorkflowState.SWAP_PREPARED, "send"):
            # Take the payload out first so it can never be signed twice
            payload, self.payload = self.payload, None

            try:
                self.tx_hash = await self.submitter.broadcast(payload, self.swap_request.chain_id)
            except SwapError as e:
                self._fail(e, "send")
                raise
            self._transition(WorkflowState.SUBMITTED)

            try:
                receipt = await self.submitter.wait_for_confirmation(self.tx_hash)
            except SwapError as e:
                self._fail(e, "confirm")
                raise

            self._transition(WorkflowState.CONFIRMED)
            self.receipt = receipt
            return receipt

    def snapshot(self) -> dict:
        """Serialisable view of the current attempt."""
        return {
            "state": self.state.value,
            "history": [s.value for s in self.history],
            "quote": self.quote.to_dict() if self.quote else None,
            "payload": self.payload_summary,
            "tx_hash": self.tx_hash,
            "receipt": self.receipt.to_dict() if self.receipt else None,
            "error": self.error.message if self.error else None,
            "stage": self.failed_stage,
        }
