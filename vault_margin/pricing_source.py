"""
pricing_source.py - Price oracle reference implementation and price conversion

Provides the price data the engine consumes and the conversions built on it.

Classes:
- RecordedPriceOracle: In-memory PriceOracle holding live prices, expiry
  prices with a finalized flag, numbered historical rounds and dust limits
- PriceConverter: Converts fixed-point amounts between assets at live or
  finalized expiry prices

All prices are 8-decimal ints quoted in a common currency (typically USD).
"""

from __future__ import annotations
from bisect import bisect_right
from typing import Dict, List, Optional, Tuple

from .core import (
    BASE_DECIMALS,
    PriceOracle, PriceUnavailable, PriceNotFinalized, RoundNotFound,
)
from .fixed_point import FixedPoint


class RecordedPriceOracle:
    """
    Price oracle backed by explicitly recorded observations.

    Live prices fall back to the most recent historical round when no live
    price has been set, which lets a single price path drive both live and
    historical queries.

    Examples:
        oracle = RecordedPriceOracle({'WETH': 2000 * 10**8, 'USDC': 10**8})
        oracle.add_round('WETH', round_id=7, price=1950 * 10**8, timestamp=1_700_000_000)
        oracle.set_expiry_price('WETH', expiry=1_700_086_400, price=2100 * 10**8)
        oracle.set_dust_limit('USDC', 10 * 10**6)
    """

    def __init__(self, prices: Optional[Dict[str, int]] = None):
        """
        Initialize with an optional map of live prices.

        Args:
            prices: Dictionary mapping assets to 8-decimal live prices
        """
        self.prices: Dict[str, int] = dict(prices or {})
        self.expiry_prices: Dict[Tuple[str, int], Tuple[int, bool]] = {}
        self.rounds: Dict[str, Dict[int, Tuple[int, int]]] = {}
        # Per-asset (timestamp, round_id) pairs kept sorted for point-in-time lookups
        self.round_index: Dict[str, List[Tuple[int, int]]] = {}
        self.dust_limits: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def set_price(self, asset: str, price: int):
        """Set the live price of an asset."""
        _check_price(asset, price)
        self.prices[asset] = price

    def set_prices(self, prices: Dict[str, int]):
        """Set multiple live prices at once."""
        for asset, price in prices.items():
            self.set_price(asset, price)

    def set_expiry_price(self, asset: str, expiry: int, price: int, finalized: bool = True):
        """Record the price of an asset at an expiry timestamp."""
        _check_price(asset, price)
        self.expiry_prices[(asset, expiry)] = (price, finalized)

    def finalize_expiry_price(self, asset: str, expiry: int):
        """Mark a previously recorded expiry price as final."""
        if (asset, expiry) not in self.expiry_prices:
            raise PriceUnavailable(f"No expiry price recorded for {asset} at {expiry}")
        price, _ = self.expiry_prices[(asset, expiry)]
        self.expiry_prices[(asset, expiry)] = (price, True)

    def add_round(self, asset: str, round_id: int, price: int, timestamp: int):
        """
        Record a numbered price round.

        Args:
            asset: Asset identity
            round_id: Oracle round identifier, unique per asset
            price: 8-decimal price reported in the round
            timestamp: Round start time as unix seconds
        """
        _check_price(asset, price)
        asset_rounds = self.rounds.setdefault(asset, {})
        index = self.round_index.setdefault(asset, [])
        if round_id in asset_rounds:
            old_timestamp = asset_rounds[round_id][1]
            index.remove((old_timestamp, round_id))
        asset_rounds[round_id] = (price, timestamp)
        index.append((timestamp, round_id))
        index.sort()

    def set_dust_limit(self, asset: str, minimum: int):
        """Register the minimum meaningful collateral amount for an asset."""
        if minimum < 0:
            raise ValueError(f"Dust limit must be non-negative, got {minimum}")
        self.dust_limits[asset] = minimum

    # ------------------------------------------------------------------
    # PriceOracle protocol
    # ------------------------------------------------------------------

    def get_price(self, asset: str) -> int:
        """Return the live price, falling back to the latest recorded round."""
        if asset in self.prices:
            return self.prices[asset]
        index = self.round_index.get(asset)
        if index:
            _, round_id = index[-1]
            return self.rounds[asset][round_id][0]
        raise PriceUnavailable(f"No live price for {asset}")

    def get_expiry_price(self, asset: str, expiry: int) -> Tuple[int, bool]:
        """Return (price, finalized); an unrecorded expiry reports (0, False)."""
        return self.expiry_prices.get((asset, expiry), (0, False))

    def get_historical_price(self, asset: str, round_id: int) -> Tuple[int, int]:
        """Return (price, timestamp) for a recorded round."""
        try:
            return self.rounds[asset][round_id]
        except KeyError:
            raise RoundNotFound(f"No round {round_id} recorded for {asset}") from None

    def get_dust_limit(self, asset: str) -> int:
        return self.dust_limits.get(asset, 0)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def round_at(self, asset: str, timestamp: int) -> Optional[int]:
        """
        Return the id of the latest round starting at or before `timestamp`.

        Returns None if no round for the asset started by then.
        Uses binary search for O(log n) lookup.
        """
        index = self.round_index.get(asset)
        if not index:
            return None

        timestamps = [ts for ts, _ in index]
        idx = bisect_right(timestamps, timestamp)
        if idx == 0:
            return None
        return index[idx - 1][1]

    def __repr__(self):
        total_rounds = sum(len(r) for r in self.rounds.values())
        return (
            f"RecordedPriceOracle({len(self.prices)} live, "
            f"{len(self.expiry_prices)} expiry, {total_rounds} rounds)"
        )


def _check_price(asset: str, price: int):
    if isinstance(price, bool) or not isinstance(price, int):
        raise ValueError(f"Price for {asset} must be an int, got {price!r}")
    if price < 0:
        raise ValueError(f"Price for {asset} must be non-negative, got {price}")


class PriceConverter:
    """
    Converts amounts between assets using oracle prices.

    Same-asset conversions are the identity and never touch the oracle.
    """

    def __init__(self, oracle: PriceOracle):
        self.oracle = oracle

    def convert_live(self, amount: FixedPoint, asset_a: str, asset_b: str) -> FixedPoint:
        """Convert `amount` of asset_a into asset_b at live prices."""
        if asset_a == asset_b:
            return amount

        price_a = FixedPoint.from_scaled(self.oracle.get_price(asset_a), BASE_DECIMALS)
        price_b = FixedPoint.from_scaled(self.oracle.get_price(asset_b), BASE_DECIMALS)
        return amount.mul(price_a).div(price_b)

    def convert_expiry(self, amount: FixedPoint, asset_a: str, asset_b: str, expiry: int) -> FixedPoint:
        """
        Convert `amount` of asset_a into asset_b at the prices recorded for `expiry`.

        Raises:
            PriceNotFinalized: if either asset's expiry price is not final
        """
        if asset_a == asset_b:
            return amount

        price_a = self._finalized_expiry_price(asset_a, expiry)
        price_b = self._finalized_expiry_price(asset_b, expiry)
        return amount.mul(price_a).div(price_b)

    def _finalized_expiry_price(self, asset: str, expiry: int) -> FixedPoint:
        price, finalized = self.oracle.get_expiry_price(asset, expiry)
        if not finalized:
            raise PriceNotFinalized(f"Price of {asset} at expiry {expiry} not finalized yet")
        return FixedPoint.from_scaled(price, BASE_DECIMALS)
