"""Pytest configuration and fixtures."""

import os
from decimal import Decimal

import httpx
import pytest
from web3.exceptions import TransactionNotFound

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DRY_RUN"] = "false"

from dexswap.aggregator.auth import RequestSigner
from dexswap.aggregator.client import AggregatorClient
from dexswap.config import Settings
from dexswap.swap.submitter import TransactionSubmitter

# Well-known development key (Hardhat/Anvil account #0), never funded on mainnet
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

ETH = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
ROUTER = "0x7D0CcAa3Fac1e5A943c5168b6CEd828691b46B36"

BASE_URL = "https://www.okx.com/api/v5/dex/aggregator"


def quote_body(to_amount: str = "3450000000") -> dict:
    return {
        "code": "0",
        "msg": "",
        "data": [
            {
                "fromTokenAmount": "1000000000000000000",
                "toTokenAmount": to_amount,
                "estimateGasFee": "135000",
                "quoteCompareList": [{"dexName": "Uniswap V3"}, {"dexName": "Curve"}],
            }
        ],
    }


def swap_body(**tx_overrides) -> dict:
    tx = {
        "from": TEST_ADDRESS,
        "to": ROUTER,
        "data": "0x0d5f0e3b00000000000000000000000000000000000000000000000000000000",
        "value": "1000000000000000000",
        "gas": "200000",
        "gasPrice": "20000000000",
        "minReceiveAmount": "3346500000",
    }
    tx.update(tx_overrides)
    return {"code": "0", "msg": "", "data": [{"routerResult": {}, "tx": tx}]}


class FakeEth:
    """Stand-in for ``web3.eth`` with scripted receipts."""

    def __init__(self, receipts=None, send_error=None, nonce=7):
        self.receipts = list(receipts or [])
        self.send_error = send_error
        self.nonce = nonce
        self.sent = []
        self.receipt_calls = 0

    def get_transaction_count(self, address, block_identifier="latest"):
        return self.nonce

    def send_raw_transaction(self, raw_tx):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw_tx)
        return bytes.fromhex("ab" * 32)

    def get_transaction_receipt(self, tx_hash):
        self.receipt_calls += 1
        if self.receipts:
            receipt = self.receipts.pop(0)
            if receipt is not None:
                return receipt
        raise TransactionNotFound(f"Transaction {tx_hash} not found")


class FakeWeb3:
    def __init__(self, eth: FakeEth):
        self.eth = eth


class RecordingTransport:
    """Builds an httpx.MockTransport that replays scripted responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        api_base_url=BASE_URL,
        api_key="test-api-key",
        secret_key="test-secret",
        passphrase="test-passphrase",
        private_key=TEST_PRIVATE_KEY,
        user_wallet_address=TEST_ADDRESS,
        chain_id="1",
        from_token_address=ETH,
        to_token_address=USDC,
        default_slippage=Decimal("0.03"),
        dry_run=False,
        confirmation_timeout=0.05,
        confirmation_poll_interval=0.01,
    )


@pytest.fixture
def signer() -> RequestSigner:
    return RequestSigner(api_key="test-api-key", secret_key="test-secret", passphrase="test-passphrase")


def make_client(signer: RequestSigner, *responses) -> tuple[AggregatorClient, RecordingTransport]:
    recorder = RecordingTransport(*responses)
    client = AggregatorClient(BASE_URL, signer, timeout=5.0, transport=recorder.transport)
    return client, recorder


def make_submitter(eth: FakeEth, **kwargs) -> TransactionSubmitter:
    options = {
        "private_key": TEST_PRIVATE_KEY,
        "rpc_url": "http://localhost:8545",
        "confirmation_timeout": 0.05,
        "poll_interval": 0.01,
    }
    options.update(kwargs)
    return TransactionSubmitter(web3=FakeWeb3(eth), **options)
