"""
Core types for the vault margin engine.

This module provides the foundational data structures and protocols:
1. Constants: decimal conventions shared by every calculation
2. Exceptions: MarginError and the domain-specific error families
3. Protocols: read-only services the engine consumes (oracle, tokens, assets)
4. Immutable data structures: Vault, OptionTerms, OptionDescriptor, VaultDetails

Nothing in this module holds state across calls. Vaults are snapshots owned
by an external controller and passed in by value.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Protocol, Sequence, Tuple, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Oracle prices, strike prices and option token amounts are 8-decimal ints.
BASE_DECIMALS = 8
BASE_UNIT = 10 ** BASE_DECIMALS

# Internal fixed-point precision. Higher than any asset's decimals so a chain
# of multiplications followed by a division loses nothing before truncation.
FP_DECIMALS = 27

# Signed 256-bit range of a fixed-point value.
FP_MAX = 2 ** 255 - 1
FP_MIN = -(2 ** 255)

# Liquidation auctions ramp from the worst-case price to full value in one day.
AUCTION_LENGTH = 86400


# ============================================================================
# EXCEPTIONS
# ============================================================================

class MarginError(Exception):
    """Base exception for all margin engine errors."""
    pass


class VaultValidationError(MarginError):
    """Raised when a vault fails structural validation."""
    pass


class InvalidVaultShape(VaultValidationError):
    """Raised when a leg has more than one entry or mismatched lengths."""
    pass


class UnmarginableLong(VaultValidationError):
    """Raised when the long leg cannot offset the short leg."""
    pass


class UnmarginableCollateral(VaultValidationError):
    """Raised when the collateral asset does not match the option's collateral."""
    pass


class PriceUnavailable(MarginError):
    """Raised when a required price cannot be obtained."""
    pass


class PriceNotFinalized(PriceUnavailable):
    """Raised when an expiry price exists but has not been finalized."""
    pass


class RoundNotFound(PriceUnavailable):
    """Raised when a historical price round is unknown to the oracle."""
    pass


class DomainRangeError(MarginError):
    """Raised when an input is outside the domain a calculation is defined on."""
    pass


class TimeOutOfRange(DomainRangeError):
    """Raised when time to expiry exceeds the naked margin curve's horizon."""
    pass


class InvalidMarginKind(DomainRangeError):
    """Raised when a margin kind selector is not recognised."""
    pass


class NotExpired(DomainRangeError):
    """Raised when an expiry-only query is made before expiry."""
    pass


class AlreadyExpired(DomainRangeError):
    """Raised when a pre-expiry query is made at or after expiry."""
    pass


class OrderingError(MarginError):
    """Raised when historical price rounds are referenced out of sequence."""
    pass


class StaleRound(OrderingError):
    """Raised when a price round does not start strictly before now."""
    pass


class OutOfOrderCheck(OrderingError):
    """Raised when a liquidation check does not reference a later round than the last one."""
    pass


class LiquidationError(MarginError):
    """Base exception for liquidation preconditions."""
    pass


class NotUndercollateralized(LiquidationError):
    """Raised when a vault is asked to be liquidated while it holds excess collateral."""
    pass


class NoDustLimitConfigured(LiquidationError):
    """Raised when the collateral asset has no registered dust limit."""
    pass


class FixedPointError(MarginError, ArithmeticError):
    """Base exception for fixed-point arithmetic failures."""
    pass


class FixedPointOverflow(FixedPointError):
    """Raised when a value cannot be represented in the fixed-point range."""
    pass


class DivisionByZero(FixedPointError):
    """Raised when a fixed-point division has a zero divisor."""
    pass


class UnknownToken(MarginError, LookupError):
    """Raised when an option token has not been registered."""
    pass


class UnknownAsset(MarginError, LookupError):
    """Raised when an asset has no registered metadata."""
    pass


# ============================================================================
# ENUMS
# ============================================================================

class MarginKind(IntEnum):
    """
    Collateral model used for a live (unexpired) vault.

    SPREAD: Max-loss margin, sized to the worst case of the short net of the long.
    NAKED: Partial collateral sized by the time-to-expiry probability curve.
    """
    SPREAD = 0
    NAKED = 1

    @classmethod
    def parse(cls, value) -> "MarginKind":
        """Convert a raw selector into a MarginKind or raise InvalidMarginKind."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidMarginKind(f"Margin kind must be an int selector, got {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise InvalidMarginKind(f"Unknown margin kind {value}") from None


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class PriceOracle(Protocol):
    """
    Read-only interface to the price oracle.

    All prices are 8-decimal ints denominated in a common quote (USD).
    """

    def get_price(self, asset: str) -> int:
        """Return the current live price of an asset."""
        ...

    def get_expiry_price(self, asset: str, expiry: int) -> Tuple[int, bool]:
        """Return (price, finalized) recorded for an asset at an expiry timestamp."""
        ...

    def get_historical_price(self, asset: str, round_id: int) -> Tuple[int, int]:
        """Return (price, start_timestamp) for a recorded price round."""
        ...

    def get_dust_limit(self, asset: str) -> int:
        """Return the minimum meaningful collateral amount, 0 if none is registered."""
        ...


@runtime_checkable
class OptionTokenSource(Protocol):
    """Resolves an option token identity to its immutable terms."""

    def get_option_details(self, otoken: str) -> "OptionTerms":
        """Return the token's (collateral, underlying, strike, strike_price, expiry, is_put)."""
        ...


@runtime_checkable
class AssetMetadataSource(Protocol):
    """Resolves an asset identity to its decimal count."""

    def get_decimals(self, asset: str) -> int:
        """Return the number of decimals the asset's amounts are expressed in."""
        ...


# ============================================================================
# VAULT
# ============================================================================

def _as_tuple(values: Optional[Sequence]) -> tuple:
    if values is None:
        return ()
    return tuple(values)


@dataclass(frozen=True, slots=True)
class Vault:
    """
    Read-only snapshot of a vault supplied by the controller.

    Each leg is a pair of parallel sequences (assets, amounts). A valid vault
    holds at most one entry per leg; anything else is still constructible so
    that validation can reject it with InvalidVaultShape.

    Attributes:
        short_otokens: Option tokens sold by the vault owner
        long_otokens: Option tokens held as an offsetting hedge
        collateral_assets: Assets posted as collateral
        short_amounts: 8-decimal short token amounts
        long_amounts: 8-decimal long token amounts
        collateral_amounts: Collateral amounts in the collateral asset's decimals
    """
    short_otokens: Tuple[Optional[str], ...] = ()
    long_otokens: Tuple[Optional[str], ...] = ()
    collateral_assets: Tuple[Optional[str], ...] = ()
    short_amounts: Tuple[int, ...] = ()
    long_amounts: Tuple[int, ...] = ()
    collateral_amounts: Tuple[int, ...] = ()

    def __post_init__(self):
        """Convert sequences to tuples and reject negative or non-integer amounts."""
        for name in (
            'short_otokens', 'long_otokens', 'collateral_assets',
            'short_amounts', 'long_amounts', 'collateral_amounts',
        ):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))

        for name in ('short_amounts', 'long_amounts', 'collateral_amounts'):
            for amount in getattr(self, name):
                if isinstance(amount, bool) or not isinstance(amount, int):
                    raise ValueError(f"{name} must contain ints, got {amount!r}")
                if amount < 0:
                    raise ValueError(f"{name} must be non-negative, got {amount}")

    @property
    def has_short(self) -> bool:
        return _is_not_empty(self.short_otokens)

    @property
    def has_long(self) -> bool:
        return _is_not_empty(self.long_otokens)

    @property
    def has_collateral(self) -> bool:
        return _is_not_empty(self.collateral_assets)

    @property
    def short_amount(self) -> int:
        """First short amount, 0 when the leg is absent."""
        return self.short_amounts[0] if self.has_short and self.short_amounts else 0

    @property
    def long_amount(self) -> int:
        """First long amount, 0 when the leg is absent."""
        return self.long_amounts[0] if self.has_long and self.long_amounts else 0

    @property
    def collateral_amount(self) -> int:
        """First collateral amount, 0 when no collateral is posted."""
        return self.collateral_amounts[0] if self.has_collateral and self.collateral_amounts else 0


def _is_not_empty(assets: Tuple[Optional[str], ...]) -> bool:
    # An empty identity in the first slot means the leg is unused.
    return len(assets) > 0 and bool(assets[0])


def single_leg_vault(
    short_otoken: Optional[str] = None,
    short_amount: int = 0,
    long_otoken: Optional[str] = None,
    long_amount: int = 0,
    collateral_asset: Optional[str] = None,
    collateral_amount: int = 0,
) -> Vault:
    """
    Build a well-shaped vault with at most one entry per leg.

    Legs whose identity is None are left empty.

    Example:
        vault = single_leg_vault(
            short_otoken="ETH-1600-P", short_amount=1 * BASE_UNIT,
            collateral_asset="USDC", collateral_amount=1600 * 10**6,
        )
    """
    return Vault(
        short_otokens=(short_otoken,) if short_otoken else (),
        long_otokens=(long_otoken,) if long_otoken else (),
        collateral_assets=(collateral_asset,) if collateral_asset else (),
        short_amounts=(short_amount,) if short_otoken else (),
        long_amounts=(long_amount,) if long_otoken else (),
        collateral_amounts=(collateral_amount,) if collateral_asset else (),
    )


# ============================================================================
# OPTION DESCRIPTORS
# ============================================================================

@dataclass(frozen=True, slots=True)
class OptionTerms:
    """
    Immutable terms of an option token, fixed for the token's lifetime.

    Attributes:
        collateral: Asset the option is collateralized in
        underlying: Asset the option is written on
        strike: Asset the strike price is denominated in
        strike_price: 8-decimal strike price
        expiry: Expiry as unix seconds
        is_put: True for puts, False for calls
    """
    collateral: str
    underlying: str
    strike: str
    strike_price: int
    expiry: int
    is_put: bool


@dataclass(frozen=True, slots=True)
class OptionDescriptor:
    """
    Terms of one vault leg resolved for a single computation.

    Built fresh on every call from the token source and the asset metadata
    source; never cached.
    """
    underlying: str
    strike: str
    collateral: str
    strike_price: int
    expiry: int
    is_put: bool
    collateral_decimals: int

    @classmethod
    def from_terms(cls, terms: OptionTerms, collateral_decimals: int) -> "OptionDescriptor":
        return cls(
            underlying=terms.underlying,
            strike=terms.strike,
            collateral=terms.collateral,
            strike_price=terms.strike_price,
            expiry=terms.expiry,
            is_put=terms.is_put,
            collateral_decimals=collateral_decimals,
        )

    def matches(self, other: "OptionDescriptor") -> bool:
        """True when both legs share underlying, strike, collateral, expiry and type."""
        return (
            self.underlying == other.underlying
            and self.strike == other.strike
            and self.collateral == other.collateral
            and self.expiry == other.expiry
            and self.is_put == other.is_put
        )


@dataclass(frozen=True, slots=True)
class VaultDetails:
    """
    Per-call resolution of a vault's legs.

    The governing leg is the short leg when present, else the long leg; it
    decides expiry, the strike and collateral assets, and the collateral
    decimals used for every projection.
    """
    short: Optional[OptionDescriptor]
    long: Optional[OptionDescriptor]
    has_collateral: bool
    collateral_decimals: int

    @property
    def has_short(self) -> bool:
        return self.short is not None

    @property
    def has_long(self) -> bool:
        return self.long is not None

    @property
    def governing(self) -> Optional[OptionDescriptor]:
        return self.short if self.short is not None else self.long
