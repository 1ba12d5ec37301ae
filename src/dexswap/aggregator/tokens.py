"""Supported chains, well-known token addresses and input validation."""

import re
from decimal import Decimal, InvalidOperation

from dexswap.errors import ValidationError

# Sentinel the aggregator uses for the chain's native coin
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Chain IDs
CHAIN_IDS = {
    "ethereum": "1",
    "optimism": "10",
    "bsc": "56",
    "gnosis": "100",
    "polygon": "137",
    "fantom": "250",
    "base": "8453",
    "arbitrum": "42161",
    "avalanche": "43114",
}

SUPPORTED_CHAIN_IDS = frozenset(CHAIN_IDS.values())

# Token addresses by chain (mainnet)
TOKEN_ADDRESSES = {
    "ethereum": {
        "ETH": NATIVE_TOKEN,
        "WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
        "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "DAI": "0x6B175474E89094C44Da98b954EedcdeCB5BE3830",
        "WBTC": "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
    },
    "bsc": {
        "BNB": NATIVE_TOKEN,
        "WBNB": "0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c",
        "USDT": "0x55d398326f99059fF775485246999027B3197955",
        "USDC": "0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d",
    },
    "polygon": {
        "MATIC": NATIVE_TOKEN,
        "WMATIC": "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",
        "USDT": "0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
        "USDC": "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
    },
    "avalanche": {
        "AVAX": NATIVE_TOKEN,
        "WAVAX": "0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7",
        "USDT": "0x9702230A8Ea53601f5cD2dc00fDBc13d4dF4A8c7",
        "USDC": "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
    },
}

_ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")
_AMOUNT_RE = re.compile(r"[0-9]+")

# Token amounts are uint256 on chain
MAX_AMOUNT_DIGITS = len(str(2**256 - 1))


def validate_amount(amount: str) -> str:
    """Amount must be a positive integer string in the token's smallest unit."""
    if not isinstance(amount, str) or not _AMOUNT_RE.fullmatch(amount):
        raise ValidationError(f"Amount must be a positive integer string, got {amount!r}")
    digits = amount.lstrip("0")
    if not digits:
        raise ValidationError("Amount must be greater than zero")
    if len(digits) > MAX_AMOUNT_DIGITS or int(digits) >= 2**256:
        raise ValidationError("Amount is larger than a uint256")
    return amount


def validate_address(address: str, label: str = "address") -> str:
    if not isinstance(address, str) or not _ADDRESS_RE.fullmatch(address):
        raise ValidationError(f"Invalid {label}: {address!r}")
    return address


def validate_chain_id(chain_id: str) -> str:
    chain_id = str(chain_id)
    if chain_id not in SUPPORTED_CHAIN_IDS:
        raise ValidationError(f"Unsupported chain id: {chain_id}")
    return chain_id


def validate_slippage(slippage) -> Decimal:
    """Slippage is a fraction strictly between 0 and 1 (0.03 = 3%)."""
    try:
        value = Decimal(str(slippage))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Slippage is not a number: {slippage!r}") from None
    if not value.is_finite():
        raise ValidationError(f"Slippage is not a number: {slippage!r}")
    if not (Decimal("0") < value < Decimal("1")):
        raise ValidationError(f"Slippage must be between 0 and 1, got {value}")
    return value
