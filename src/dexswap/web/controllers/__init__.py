"""HTTP controllers for the swap form."""

from dexswap.web.controllers.swaps import router as swaps_router

__all__ = [
    "swaps_router",
]
