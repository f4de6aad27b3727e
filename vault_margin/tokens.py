"""
tokens.py - Option token terms and asset metadata

In-memory implementations of the two descriptor services the engine reads:
- OptionTokenRegistry: option token identity -> OptionTerms
- AssetRegistry: asset identity -> decimal count

Terms are registered once and never change afterwards, matching the
immutability of a deployed option token.
"""

from __future__ import annotations
from typing import Dict

from .core import OptionTerms, UnknownAsset, UnknownToken


def create_option_terms(
    underlying: str,
    strike: str,
    collateral: str,
    strike_price: int,
    expiry: int,
    is_put: bool,
) -> OptionTerms:
    """
    Create validated option terms.

    Args:
        underlying: Asset the option is written on (e.g., "WETH")
        strike: Asset the strike is denominated in (e.g., "USDC")
        collateral: Asset backing the option (strike asset for puts, underlying for calls)
        strike_price: 8-decimal strike price; 0 is allowed
        expiry: Expiry as unix seconds
        is_put: True for a put, False for a call

    Returns:
        Frozen OptionTerms.
    """
    if not underlying or not strike or not collateral:
        raise ValueError("underlying, strike and collateral assets are required")
    if isinstance(strike_price, bool) or not isinstance(strike_price, int):
        raise ValueError(f"strike_price must be an int, got {strike_price!r}")
    if strike_price < 0:
        raise ValueError(f"strike_price must be non-negative, got {strike_price}")
    if expiry <= 0:
        raise ValueError(f"expiry must be positive, got {expiry}")

    return OptionTerms(
        collateral=collateral,
        underlying=underlying,
        strike=strike,
        strike_price=strike_price,
        expiry=expiry,
        is_put=bool(is_put),
    )


class OptionTokenRegistry:
    """
    Registry of option tokens and their terms.

    Example:
        tokens = OptionTokenRegistry()
        tokens.register("WETH-1500-P", create_option_terms(
            "WETH", "USDC", "USDC", 1500 * 10**8, expiry, is_put=True))
    """

    def __init__(self):
        self.terms: Dict[str, OptionTerms] = {}

    def register(self, otoken: str, terms: OptionTerms):
        """Register a token. Re-registering with different terms is rejected."""
        existing = self.terms.get(otoken)
        if existing is not None and existing != terms:
            raise ValueError(f"Option token {otoken} already registered with different terms")
        self.terms[otoken] = terms

    def get_option_details(self, otoken: str) -> OptionTerms:
        if otoken not in self.terms:
            raise UnknownToken(f"Option token {otoken} not registered")
        return self.terms[otoken]

    def __contains__(self, otoken: str) -> bool:
        return otoken in self.terms

    def __repr__(self):
        return f"OptionTokenRegistry({len(self.terms)} tokens)"


class AssetRegistry:
    """Registry of asset decimal counts."""

    def __init__(self, decimals: Dict[str, int] = None):
        self.decimals: Dict[str, int] = {}
        for asset, count in (decimals or {}).items():
            self.register_asset(asset, count)

    def register_asset(self, asset: str, decimals: int):
        if decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {decimals}")
        self.decimals[asset] = decimals

    def get_decimals(self, asset: str) -> int:
        if asset not in self.decimals:
            raise UnknownAsset(f"Asset {asset} not registered")
        return self.decimals[asset]

    def __repr__(self):
        return f"AssetRegistry({len(self.decimals)} assets)"
