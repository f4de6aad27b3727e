"""
settlement.py - Cash settlement of expired options

Pure functions over a PriceConverter; every price used here is a finalized
expiry price.

Key Formulas:
    underlying_in_strike = 1 underlying converted to strike at expiry prices
    put cash value       = max(strike_price - underlying_in_strike, 0)
    call cash value      = max(underlying_in_strike - strike_price, 0)
    vault proceeds       = short_cash * short_amount - long_cash * long_amount
                           (strike terms, then converted to collateral)

A positive vault proceeds value is owed by the vault, which is why the
margin calculator treats it as the collateral required after expiry.
"""

from __future__ import annotations

from .core import (
    BASE_DECIMALS,
    NotExpired, OptionDescriptor, Vault, VaultDetails,
)
from .fixed_point import FixedPoint, ONE, ZERO
from .pricing_source import PriceConverter


def expired_cash_value(
    converter: PriceConverter,
    underlying: str,
    strike: str,
    expiry: int,
    strike_price: int,
    is_put: bool,
) -> FixedPoint:
    """
    Cash value of one expired option, in strike-asset terms.

    Raises:
        PriceNotFinalized: if the underlying or strike expiry price is not final
    """
    strike_value = FixedPoint.from_scaled(strike_price, BASE_DECIMALS)
    underlying_in_strike = converter.convert_expiry(ONE, underlying, strike, expiry)

    if is_put:
        if strike_value > underlying_in_strike:
            return strike_value.sub(underlying_in_strike)
        return ZERO

    if underlying_in_strike > strike_value:
        return underlying_in_strike.sub(strike_value)
    return ZERO


def _leg_cash_value(converter: PriceConverter, leg: OptionDescriptor) -> FixedPoint:
    return expired_cash_value(
        converter, leg.underlying, leg.strike, leg.expiry, leg.strike_price, leg.is_put,
    )


def expired_vault_proceeds(
    converter: PriceConverter,
    vault: Vault,
    details: VaultDetails,
) -> FixedPoint:
    """
    Net settlement obligation of an expired vault, in collateral terms.

    Positive: the vault owes this much collateral to short token holders.
    Negative: the vault's long leg pays out more than its short leg costs.
    """
    governing = details.governing
    if governing is None:
        return ZERO

    short_amount = FixedPoint.from_scaled(vault.short_amount, BASE_DECIMALS)
    long_amount = FixedPoint.from_scaled(vault.long_amount, BASE_DECIMALS)

    short_cash = _leg_cash_value(converter, details.short) if details.has_short else ZERO
    long_cash = _leg_cash_value(converter, details.long) if details.has_long else ZERO

    net_in_strike = short_cash.mul(short_amount).sub(long_cash.mul(long_amount))
    return converter.convert_expiry(
        net_in_strike, governing.strike, governing.collateral, governing.expiry,
    )


def expired_payout_rate(
    converter: PriceConverter,
    descriptor: OptionDescriptor,
    now: int,
) -> int:
    """
    Collateral redeemable for one whole expired option token.

    Args:
        converter: Price conversion over finalized expiry prices
        descriptor: Resolved option terms
        now: Current unix time

    Returns:
        Payout in collateral decimals, rounded down.

    Raises:
        NotExpired: if called before the option's expiry
    """
    if now < descriptor.expiry:
        raise NotExpired(f"Option not expired yet: expiry {descriptor.expiry}, now {now}")

    cash_in_strike = _leg_cash_value(converter, descriptor)
    cash_in_collateral = converter.convert_expiry(
        cash_in_strike, descriptor.strike, descriptor.collateral, descriptor.expiry,
    )
    return cash_in_collateral.to_scaled(descriptor.collateral_decimals, round_up=False)
