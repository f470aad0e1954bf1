"""occ-swap - token swaps on NEAR through the OpenClawChain swap API."""

__version__ = "1.0.0"
