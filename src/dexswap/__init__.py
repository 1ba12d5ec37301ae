"""dexswap - quote, prepare and send token swaps through a DEX aggregator."""

__version__ = "0.1.0"
