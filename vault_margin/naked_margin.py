"""
naked_margin.py - Collateral curve for uncovered short options

A short option with no offsetting long is partially collateralized. The
requirement blends a time-to-expiry probability (the curve value `c`) with a
spot shock of 3/4 for puts and 4/3 for calls:

    PUT   strike < 3/4 * spot     c * strike
    PUT   otherwise               c * 3/4 * spot + (strike - 3/4 * spot)
    CALL  spot > 4/3 * strike     1 - (1 - c) * 4/3 * strike / spot
    CALL  otherwise               c

Put requirements are in strike-asset units, call requirements in underlying
units, both per one whole option token.
"""

from __future__ import annotations
from typing import Tuple

from .core import BASE_DECIMALS, TimeOutOfRange
from .fixed_point import FixedPoint, ONE


CURVE_DECIMALS = 12

# (seconds to expiry, probability scaled by 1e12), ascending by boundary.
NAKED_MARGIN_CURVE: Tuple[Tuple[int, int], ...] = (
    (86400, 52166761235),       # 1 day
    (259200, 90226787871),      # 3 days
    (604800, 137432041436),     # 7 days
    (1209600, 193395770533),    # 14 days
    (2419200, 281783870466),    # 28 days
)

MAX_TIME_TO_EXPIRY = NAKED_MARGIN_CURVE[-1][0]

_THREE = FixedPoint.from_unscaled(3)
_FOUR = FixedPoint.from_unscaled(4)


def curve_value(time_to_expiry: int) -> int:
    """
    Return the curve value of the first bucket whose boundary is >= time_to_expiry.

    Raises:
        TimeOutOfRange: for a negative time or beyond the 28 day horizon,
            where the curve is undefined
    """
    if time_to_expiry < 0:
        raise TimeOutOfRange(f"Time to expiry {time_to_expiry}s is negative; the option has expired")
    if time_to_expiry > MAX_TIME_TO_EXPIRY:
        raise TimeOutOfRange(
            f"Time to expiry {time_to_expiry}s exceeds the {MAX_TIME_TO_EXPIRY}s curve horizon"
        )
    for boundary, value in NAKED_MARGIN_CURVE:
        if time_to_expiry <= boundary:
            return value
    # Unreachable: the last boundary equals MAX_TIME_TO_EXPIRY.
    raise TimeOutOfRange(f"Time to expiry {time_to_expiry}s not covered by the curve")


def _per_unit_requirement(
    strike_price: int,
    spot_price: int,
    time_to_expiry: int,
    is_put: bool,
) -> FixedPoint:
    curve = FixedPoint.from_scaled(curve_value(time_to_expiry), CURVE_DECIMALS)
    strike = FixedPoint.from_scaled(strike_price, BASE_DECIMALS)
    spot = FixedPoint.from_scaled(spot_price, BASE_DECIMALS)

    if is_put:
        shocked_spot = spot.mul(_THREE).div(_FOUR)
        if strike.mul(_FOUR) < spot.mul(_THREE):
            return curve.mul(strike)
        return curve.mul(shocked_spot).add(strike.sub(shocked_spot))

    if spot.mul(_THREE) > strike.mul(_FOUR):
        return ONE.sub(ONE.sub(curve).mul(strike.mul(_FOUR)).div(spot.mul(_THREE)))
    return curve


def naked_margin_per_unit(
    strike_price: int,
    spot_price: int,
    time_to_expiry: int,
    is_put: bool,
    collateral_decimals: int,
) -> int:
    """
    Collateral required per one whole short option token.

    Args:
        strike_price: 8-decimal strike price
        spot_price: 8-decimal price of the underlying
        time_to_expiry: Seconds until expiry (at most 28 days)
        is_put: Put or call
        collateral_decimals: Decimals of the collateral asset

    Returns:
        Requirement in collateral decimals, rounded up.
    """
    requirement = _per_unit_requirement(strike_price, spot_price, time_to_expiry, is_put)
    return requirement.to_scaled(collateral_decimals, round_up=True)


def naked_margin_required(
    strike_price: int,
    spot_price: int,
    time_to_expiry: int,
    is_put: bool,
    short_amount: int,
    collateral_decimals: int,
) -> int:
    """
    Collateral required for `short_amount` (8-decimal) uncovered short tokens.

    Returns:
        Requirement in collateral decimals, rounded up.
    """
    per_unit = FixedPoint.from_scaled(
        naked_margin_per_unit(strike_price, spot_price, time_to_expiry, is_put, collateral_decimals),
        collateral_decimals,
    )
    amount = FixedPoint.from_scaled(short_amount, BASE_DECIMALS)
    return per_unit.mul(amount).to_scaled(collateral_decimals, round_up=True)
