"""Error taxonomy for the swap workflow.

Every error carries the stage it was raised in so the presentation layer can
tell the user which step failed.
"""

from typing import Optional


class SwapError(Exception):
    """Base class for all workflow errors."""

    default_stage = "workflow"

    def __init__(self, message: str, stage: Optional[str] = None):
        self.message = message
        self.stage = stage or self.default_stage
        super().__init__(message)


class ConfigurationError(SwapError):
    """Missing or malformed credentials and endpoints."""

    default_stage = "configuration"


class ValidationError(SwapError):
    """Bad amount, address, chain id or slippage."""

    default_stage = "validation"


class NetworkError(SwapError):
    """Request failed, timed out, returned non-2xx or an error envelope."""

    def __init__(self, message: str, stage: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, stage)


class NoRouteError(SwapError):
    """The aggregator returned no usable result."""


class SigningError(SwapError):
    """Bad private key or a transaction that cannot be signed."""

    default_stage = "send"


class SubmissionError(SwapError):
    """The node rejected the broadcast, or its outcome is unknown."""

    default_stage = "send"


class ConfirmationTimeout(SwapError):
    """No inclusion within the configured wait. The transaction is not retried."""

    default_stage = "confirm"

    def __init__(self, message: str, tx_hash: str, stage: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message, stage)


class InvalidTransition(SwapError):
    """A workflow step was requested from the wrong state."""
