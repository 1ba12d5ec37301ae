"""Swap aggregator HTTP client.

Two read-only calls: ``/quote`` (estimated output) and ``/swap`` (ready-to-sign
transaction). Both are authenticated GET requests; nothing is retried.
"""

import logging
from typing import Optional
from urllib.parse import urlencode, urlsplit

import httpx
from pydantic import ValidationError as PydanticValidationError

from dexswap.aggregator.auth import RequestSigner
from dexswap.aggregator.models import QuoteRequest, QuoteResult, SwapPayload, SwapRequest
from dexswap.errors import NetworkError, NoRouteError

logger = logging.getLogger(__name__)


class AggregatorClient:
    """Client for the aggregator's quote and swap endpoints."""

    def __init__(
        self,
        base_url: str,
        signer: RequestSigner,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Endpoint root including the API prefix,
                e.g. https://www.okx.com/api/v5/dex/aggregator
            signer: Builds the authentication headers
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.signer = signer
        self.timeout = timeout
        self._transport = transport
        self._path_prefix = urlsplit(self.base_url).path.rstrip("/")

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        return cls(
            base_url=settings.api_base_url,
            signer=RequestSigner.from_settings(settings),
            timeout=settings.request_timeout,
            transport=transport,
        )

    @staticmethod
    def quote_path(request: QuoteRequest) -> str:
        """Request path relative to the base URL, e.g. ``/quote?amount=...``."""
        return f"/quote?{urlencode(request.to_params())}"

    @staticmethod
    def swap_path(request: SwapRequest) -> str:
        return f"/swap?{urlencode(request.to_params())}"

    async def get_quote(self, request: QuoteRequest) -> QuoteResult:
        """Get the estimated destination amount for a swap.

        Raises:
            ValidationError: Bad amount, address or chain id
            NetworkError: Transport failure, non-2xx or error envelope
            NoRouteError: Empty result list or unusable quote
        """
        request.validate()
        item = await self._get_first(self.quote_path(request), stage="quote")

        try:
            to_amount = int(item["toTokenAmount"])
            from_amount = int(item.get("fromTokenAmount") or request.amount)
        except (KeyError, TypeError, ValueError):
            raise NoRouteError("Quote response has no usable toTokenAmount", stage="quote") from None

        gas_fee = item.get("estimateGasFee")
        dex_names = [
            entry["dexName"]
            for entry in item.get("quoteCompareList") or []
            if isinstance(entry, dict) and entry.get("dexName")
        ]

        quote = QuoteResult(
            from_token_amount=from_amount,
            to_token_amount=to_amount,
            estimate_gas_fee=int(gas_fee) if str(gas_fee or "").isdigit() else None,
            dex_names=dex_names,
            raw=item,
        )
        logger.info(
            f"Quote on chain {request.chain_id}: {quote.from_token_amount} "
            f"{request.from_token_address} -> {quote.to_token_amount} {request.to_token_address}"
        )
        return quote

    async def get_swap(self, request: SwapRequest) -> SwapPayload:
        """Get a ready-to-sign swap transaction.

        Raises:
            ValidationError: Bad input
            NetworkError: Transport failure, non-2xx or error envelope
            NoRouteError: Empty result list, missing or malformed ``tx``
        """
        request.validate()
        item = await self._get_first(self.swap_path(request), stage="prepare")

        tx = item.get("tx")
        if not isinstance(tx, dict):
            raise NoRouteError("Swap response has no transaction", stage="prepare")

        try:
            payload = SwapPayload.model_validate(tx)
        except PydanticValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise NoRouteError(f"Malformed swap transaction ({fields})", stage="prepare") from e

        logger.info(
            f"Swap payload ready: to={payload.to} value={payload.value} "
            f"gas={payload.gas} gasPrice={payload.gas_price}"
        )
        return payload

    async def _get_first(self, path: str, stage: str) -> dict:
        """GET ``path`` and return the first element of the ``data`` list."""
        url = f"{self.base_url}{path}"
        headers = self.signer.headers("GET", f"{self._path_prefix}{path}")

        logger.debug(f"GET {self._path_prefix}{path}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Aggregator request timed out after {self.timeout}s", stage=stage) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Aggregator request failed: {type(e).__name__}: {e}", stage=stage) from e

        if not response.is_success:
            logger.warning(f"Aggregator API error: {response.status_code} - {response.text[:200]}")
            raise NetworkError(
                f"Aggregator returned HTTP {response.status_code}",
                stage=stage,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError("Aggregator returned a non-JSON body", stage=stage) from e

        if not isinstance(body, dict):
            raise NetworkError("Aggregator returned an unexpected body", stage=stage)

        code = str(body.get("code", "0"))
        if code != "0":
            raise NetworkError(
                f"Aggregator error {code}: {body.get('msg') or 'unknown error'}",
                stage=stage,
                status_code=response.status_code,
            )

        data = body.get("data")
        if not data or not isinstance(data, list) or not isinstance(data[0], dict):
            raise NoRouteError("No route found for this pair and amount", stage=stage)
        return data[0]
