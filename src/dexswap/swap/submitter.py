"""Transaction submitter for aggregator swap payloads.

Inflates the suggested gas, signs with the held key, broadcasts to the
configured node and waits for inclusion. Broadcasting moves funds, so
nothing here is ever retried.
"""

import asyncio
import logging
from decimal import ROUND_FLOOR, Decimal
from typing import Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import TransactionNotFound

from dexswap.aggregator.models import SwapPayload, TransactionReceipt
from dexswap.errors import (
    ConfirmationTimeout,
    NetworkError,
    SigningError,
    SubmissionError,
)

logger = logging.getLogger(__name__)

DEFAULT_GAS_MULTIPLIER = Decimal("1.5")


def adjust_gas(value: int, multiplier: Decimal = DEFAULT_GAS_MULTIPLIER) -> int:
    """Scale a gas limit or gas price by ``multiplier``, rounding down."""
    scaled = Decimal(int(value)) * Decimal(multiplier)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def _to_hex(value) -> str:
    if isinstance(value, str):
        text = value
    else:
        text = value.hex()
    return text if text.startswith("0x") else f"0x{text}"


class TransactionSubmitter:
    """Signs and broadcasts swap payloads on an EVM chain."""

    def __init__(
        self,
        private_key: str,
        rpc_url: str,
        gas_multiplier: Decimal = DEFAULT_GAS_MULTIPLIER,
        rpc_timeout: float = 30.0,
        confirmation_timeout: float = 120.0,
        poll_interval: float = 2.0,
        dry_run: bool = False,
        web3: Optional[Web3] = None,
    ):
        if Decimal(gas_multiplier) < 1:
            raise ValueError("gas_multiplier must be at least 1")
        self._private_key = private_key
        self.rpc_url = rpc_url
        self.gas_multiplier = Decimal(gas_multiplier)
        self.rpc_timeout = rpc_timeout
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.dry_run = dry_run
        self._web3 = web3
        self._account = None

    def __repr__(self) -> str:
        return f"TransactionSubmitter(rpc_url={self.rpc_url!r}, dry_run={self.dry_run})"

    @classmethod
    def from_settings(cls, settings, web3: Optional[Web3] = None) -> "TransactionSubmitter":
        return cls(
            private_key=settings.private_key.get_secret_value(),
            rpc_url=settings.rpc_url,
            gas_multiplier=settings.gas_multiplier,
            rpc_timeout=settings.rpc_timeout,
            confirmation_timeout=settings.confirmation_timeout,
            poll_interval=settings.confirmation_poll_interval,
            dry_run=settings.dry_run,
            web3=web3,
        )

    @property
    def web3(self) -> Web3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = Web3(
                Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": self.rpc_timeout})
            )
        return self._web3

    @property
    def account(self):
        """Account for the held key. A bad key is a signing failure."""
        if self._account is None:
            try:
                self._account = Account.from_key(self._private_key)
            except Exception as e:
                # Never include the key material in the message
                raise SigningError(f"Invalid private key ({type(e).__name__})") from None
        return self._account

    @property
    def address(self) -> str:
        return self.account.address

    def build_transaction(self, payload: SwapPayload, nonce: int, chain_id) -> dict:
        """Legacy transaction from the payload with the gas safety factor applied."""
        return {
            "to": Web3.to_checksum_address(payload.to),
            "data": payload.data,
            "value": payload.value,
            "gas": adjust_gas(payload.gas, self.gas_multiplier),
            "gasPrice": adjust_gas(payload.gas_price, self.gas_multiplier),
            "nonce": nonce,
            "chainId": int(chain_id),
        }

    def sign(self, tx: dict):
        """Sign a transaction dict with the held key."""
        account = self.account
        try:
            return account.sign_transaction(tx)
        except Exception as e:
            raise SigningError(f"Could not sign transaction: {type(e).__name__}: {e}") from e

    async def broadcast(self, payload: SwapPayload, chain_id) -> str:
        """Sign the payload and send it to the node. Returns the transaction hash.

        Raises:
            SigningError: Bad key, wrong wallet or unsignable payload
            NetworkError: Nonce lookup failed (nothing was sent)
            SubmissionError: Node rejected the transaction or the outcome is unknown
        """
        account = self.account
        if payload.from_address and payload.from_address.lower() != account.address.lower():
            raise SigningError(
                f"Swap payload was built for {payload.from_address}, not {account.address}"
            )

        try:
            nonce = self.web3.eth.get_transaction_count(account.address, "pending")
        except Exception as e:
            raise NetworkError(f"Could not fetch nonce: {type(e).__name__}: {e}", stage="send") from e

        tx = self.build_transaction(payload, nonce, chain_id)
        signed = self.sign(tx)
        # eth-account >= 0.13 uses raw_transaction, older versions use rawTransaction
        raw_tx = getattr(signed, "raw_transaction", None) or signed.rawTransaction
        signed_hash = _to_hex(signed.hash)

        if self.dry_run:
            logger.info(f"DRY RUN: signed {signed_hash} (nonce {nonce}), not broadcast")
            return signed_hash

        try:
            tx_hash = self.web3.eth.send_raw_transaction(raw_tx)
        except Exception as e:
            logger.error(f"Broadcast of {signed_hash} failed: {e}")
            raise SubmissionError(f"Broadcast rejected: {e}") from e

        tx_hash_hex = _to_hex(tx_hash)
        logger.info(
            f"Broadcast {tx_hash_hex} (nonce {nonce}, gas {tx['gas']}, gasPrice {tx['gasPrice']})"
        )
        return tx_hash_hex

    async def wait_for_confirmation(self, tx_hash: str) -> TransactionReceipt:
        """Wait for the transaction to be included in a block.

        Raises:
            ConfirmationTimeout: Not included within ``confirmation_timeout``
        """
        if self.dry_run:
            return TransactionReceipt(tx_hash=tx_hash, status="simulated")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirmation_timeout

        while True:
            try:
                receipt = self.web3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                receipt = None
            except Exception as e:
                logger.warning(f"Receipt lookup for {tx_hash} failed: {e}")
                receipt = None

            if receipt is not None:
                status = "success" if receipt["status"] == 1 else "reverted"
                logger.info(f"Transaction {tx_hash} included in block {receipt['blockNumber']} ({status})")
                return TransactionReceipt(
                    tx_hash=tx_hash,
                    status=status,
                    block_number=receipt.get("blockNumber"),
                    gas_used=receipt.get("gasUsed"),
                )

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ConfirmationTimeout(
                    f"Transaction {tx_hash} not confirmed after {self.confirmation_timeout}s",
                    tx_hash=tx_hash,
                )
            await asyncio.sleep(min(self.poll_interval, remaining))

    async def submit(self, payload: SwapPayload, chain_id) -> TransactionReceipt:
        """Broadcast and wait for confirmation."""
        tx_hash = await self.broadcast(payload, chain_id)
        return await self.wait_for_confirmation(tx_hash)
