"""Swap submission and the quote -> prepare -> send workflow."""

from dexswap.swap.submitter import TransactionSubmitter, adjust_gas
from dexswap.swap.workflow import SwapWorkflow, WorkflowState

__all__ = [
    "SwapWorkflow",
    "TransactionSubmitter",
    "WorkflowState",
    "adjust_gas",
]
