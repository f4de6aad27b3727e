"""
fixed_point.py - Signed fixed-point arithmetic at 27 decimals

Every margin, settlement and liquidation formula runs on FixedPoint values so
that a chain of multiplications followed by a division loses no precision
before the final projection back to an asset's own decimals.

Rounding rules:
    mul:        a * b / 10^27, truncated toward zero
    div:        a * 10^27 / b, truncated toward zero
    to_scaled:  truncates, or rounds the magnitude up when round_up is set

Every constructor and operation is range-checked against the signed 256-bit
range and raises FixedPointOverflow instead of wrapping.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, localcontext

from .core import (
    FP_DECIMALS, FP_MAX, FP_MIN,
    DivisionByZero, FixedPointOverflow,
)


SCALE = 10 ** FP_DECIMALS


def _check_range(value: int) -> int:
    if value > FP_MAX or value < FP_MIN:
        raise FixedPointOverflow(f"Value {value} exceeds the fixed-point range")
    return value


def _div_toward_zero(numerator: int, denominator: int) -> int:
    # Python's // floors; fixed-point math truncates toward zero.
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


@dataclass(frozen=True, slots=True, order=True)
class FixedPoint:
    """
    Signed decimal number stored as an int scaled by 10^27.

    Examples:
        FixedPoint.from_unscaled(3).value == 3 * 10**27
        FixedPoint.from_scaled(150_000_000, 8) == FixedPoint.from_unscaled(1) * FixedPoint.from_scaled(15, 1)
    """
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"FixedPoint value must be an int, got {self.value!r}")
        _check_range(self.value)

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    @classmethod
    def from_unscaled(cls, number: int) -> FixedPoint:
        """Lift a whole number into fixed-point."""
        return cls(_check_range(number * SCALE))

    @classmethod
    def from_scaled(cls, value: int, decimals: int) -> FixedPoint:
        """
        Lift an external non-negative int expressed with `decimals` decimals.

        Raises:
            ValueError: if value or decimals is negative
            FixedPointOverflow: if the lifted value is not representable
        """
        if value < 0:
            raise ValueError(f"Scaled value must be non-negative, got {value}")
        if decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {decimals}")

        if decimals == FP_DECIMALS:
            return cls(_check_range(value))
        if decimals > FP_DECIMALS:
            return cls(_check_range(value // 10 ** (decimals - FP_DECIMALS)))
        return cls(_check_range(value * 10 ** (FP_DECIMALS - decimals)))

    def to_scaled(self, decimals: int, round_up: bool = False) -> int:
        """
        Project the magnitude back to an external int with `decimals` decimals.

        The sign is dropped; callers carry it separately (e.g. as an
        is_excess flag).

        Args:
            decimals: Target decimal count
            round_up: Add one unit when a non-zero remainder is truncated
        """
        if decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {decimals}")

        magnitude = abs(self.value)
        if decimals == FP_DECIMALS:
            return magnitude
        if decimals > FP_DECIMALS:
            return magnitude * 10 ** (decimals - FP_DECIMALS)

        divisor = 10 ** (FP_DECIMALS - decimals)
        scaled, remainder = divmod(magnitude, divisor)
        if round_up and remainder > 0:
            scaled += 1
        return scaled

    def to_decimal(self) -> Decimal:
        """Render as a Decimal (display and assertions only)."""
        with localcontext() as ctx:
            ctx.prec = 100
            return Decimal(self.value).scaleb(-FP_DECIMALS)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def add(self, other: FixedPoint) -> FixedPoint:
        return FixedPoint(_check_range(self.value + other.value))

    def sub(self, other: FixedPoint) -> FixedPoint:
        return FixedPoint(_check_range(self.value - other.value))

    def mul(self, other: FixedPoint) -> FixedPoint:
        return FixedPoint(_check_range(_div_toward_zero(self.value * other.value, SCALE)))

    def div(self, other: FixedPoint) -> FixedPoint:
        if other.value == 0:
            raise DivisionByZero("Fixed-point division by zero")
        return FixedPoint(_check_range(_div_toward_zero(self.value * SCALE, other.value)))

    __add__ = add
    __sub__ = sub
    __mul__ = mul
    __truediv__ = div

    def __neg__(self) -> FixedPoint:
        return FixedPoint(_check_range(-self.value))

    # ------------------------------------------------------------------
    # Comparisons
    # ------------------------------------------------------------------

    def is_greater_than(self, other: FixedPoint) -> bool:
        return self.value > other.value

    def is_greater_or_equal(self, other: FixedPoint) -> bool:
        return self.value >= other.value

    def is_equal(self, other: FixedPoint) -> bool:
        return self.value == other.value

    def is_negative(self) -> bool:
        return self.value < 0

    def __repr__(self) -> str:
        return f"FixedPoint({self.to_decimal()})"


ZERO = FixedPoint(0)
ONE = FixedPoint(SCALE)


def fp_min(a: FixedPoint, b: FixedPoint) -> FixedPoint:
    return a if a.value <= b.value else b


def fp_max(a: FixedPoint, b: FixedPoint) -> FixedPoint:
    return a if a.value >= b.value else b
