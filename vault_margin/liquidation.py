"""
liquidation.py - Partial liquidation pricing for under-collateralized vaults

A liquidator buys a vault's collateral against short option tokens it
brings in. The price per token starts at a worst-case settlement estimate
taken at a historical price round and rises linearly to the vault's full
collateral per token over AUCTION_LENGTH.

Key Formulas (per whole short token, collateral terms):
    B          = collateral_amount / short_amount
    deviation  = deviation_factor / 10^deviation_decimals * price
    A (put)    = max(strike - price - deviation, 0)
    A (call)   = max(price - deviation - strike, 0) / price
    A          = min(A, B)
    sale       = B                                   if elapsed > AUCTION_LENGTH
                 A + elapsed * (B - A) / AUCTION_LENGTH  otherwise
    proceeds   = sale * amount
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .core import (
    AUCTION_LENGTH, BASE_DECIMALS,
    AlreadyExpired, NoDustLimitConfigured, NotUndercollateralized, OutOfOrderCheck, StaleRound,
    Vault,
)
from .calculator import MarginCalculator
from .fixed_point import FixedPoint, ZERO, fp_max, fp_min
from .validation import check_vault_shape, validate_vault


@dataclass(frozen=True, slots=True)
class LiquidationConfig:
    """
    Tolerance against oracle drift between the checked round and now.

    Attributes:
        deviation_factor: Fraction of the round price, scaled by 10^deviation_decimals
        deviation_decimals: Decimals of deviation_factor
    """
    deviation_factor: int = 0
    deviation_decimals: int = 4

    def __post_init__(self):
        if self.deviation_factor < 0:
            raise ValueError(f"deviation_factor must be non-negative, got {self.deviation_factor}")
        if self.deviation_decimals < 0:
            raise ValueError(f"deviation_decimals must be non-negative, got {self.deviation_decimals}")

    @property
    def deviation(self) -> FixedPoint:
        return FixedPoint.from_scaled(self.deviation_factor, self.deviation_decimals)


@dataclass(frozen=True, slots=True)
class LiquidationStatus:
    """Snapshot of a vault's solvency at a historical price round."""
    is_undercollateralized: bool
    price: int
    timestamp: int
    collateral_dust: int


def auction_price(
    start_price: FixedPoint,
    full_price: FixedPoint,
    elapsed: int,
    auction_length: int = AUCTION_LENGTH,
) -> FixedPoint:
    """
    Linear ramp from start_price to full_price over auction_length seconds.

    Precondition: start_price <= full_price, so the result never decreases
    with elapsed time and never exceeds full_price.
    """
    if elapsed < 0:
        raise ValueError(f"elapsed must be non-negative, got {elapsed}")
    if elapsed > auction_length:
        return full_price

    ramp = full_price.sub(start_price).mul(FixedPoint.from_unscaled(elapsed))
    return start_price.add(ramp.div(FixedPoint.from_unscaled(auction_length)))


class LiquidationEngine:
    """
    Prices partial liquidations against historical price rounds.

    Example:
        engine = LiquidationEngine(calculator, LiquidationConfig(deviation_factor=50))
        proceeds = engine.liquidation_sale_price(vault, 10**8, round_id, last_checked, now)
    """

    def __init__(
        self,
        calculator: MarginCalculator,
        config: Optional[LiquidationConfig] = None,
        verbose: bool = False,
    ):
        self.calculator = calculator
        self.oracle = calculator.oracle
        self.config = config or LiquidationConfig()
        self.verbose = verbose

    def liquidation_sale_price(
        self,
        vault: Vault,
        amount: int,
        round_id: int,
        last_checked_timestamp: int,
        now: int,
    ) -> int:
        """
        Collateral a liquidator receives for `amount` (8-decimal) short tokens.

        Args:
            vault: Vault snapshot
            amount: Short tokens brought in by the liquidator
            round_id: Price round the liquidation is checked against
            last_checked_timestamp: Round start time of the vault's previous check
            now: Current unix time

        Returns:
            Collateral amount in collateral decimals, rounded down.

        Raises:
            AlreadyExpired: if the short leg has expired; the vault settles instead
            ValueError: if amount exceeds the vault's short amount
            StaleRound: if the round does not start strictly before now
            OutOfOrderCheck: if the round is not later than the previous check
            NotUndercollateralized: if the vault had excess collateral at the round
        """
        details = self.calculator.vault_details(vault)
        validate_vault(vault, details)
        if not details.has_short:
            raise NotUndercollateralized("Vault has no short position to liquidate")

        short = details.short
        if now >= short.expiry:
            raise AlreadyExpired(f"Vault short expired at {short.expiry}, now {now}; it settles instead")
        if amount > vault.short_amount:
            raise ValueError(f"Liquidation amount {amount} exceeds the vault's short amount {vault.short_amount}")

        price, start_time = self.oracle.get_historical_price(short.underlying, round_id)

        if not start_time < now:
            raise StaleRound(f"Round {round_id} starts at {start_time}, not before now {now}")
        if not start_time > last_checked_timestamp:
            raise OutOfOrderCheck(
                f"Round {round_id} starts at {start_time}, not after last check {last_checked_timestamp}"
            )

        _, is_excess = self.calculator.historical_excess_naked_margin(vault, price, start_time)
        if is_excess:
            raise NotUndercollateralized(f"Vault holds excess collateral at round {round_id}")

        decimals = details.collateral_decimals
        collateral = FixedPoint.from_scaled(vault.collateral_amount, decimals)
        short_amount = FixedPoint.from_scaled(vault.short_amount, BASE_DECIMALS)
        full_price = collateral.div(short_amount)

        start_price = fp_min(self._worst_case_price(short.strike_price, price, short.is_put), full_price)
        sale = auction_price(start_price, full_price, now - start_time)

        proceeds = sale.mul(FixedPoint.from_scaled(amount, BASE_DECIMALS)).to_scaled(decimals, round_up=False)
        if self.verbose:
            print(
                f"[LIQUIDATION] round={round_id} start={start_price.to_decimal()} "
                f"full={full_price.to_decimal()} sale={sale.to_decimal()} proceeds={proceeds}"
            )
        return proceeds

    def liquidation_status(self, vault: Vault, round_id: int, now: int) -> LiquidationStatus:
        """
        Whether a vault was under-collateralized at a price round.

        Expired vaults and vaults without a short are never liquidatable.
        No ordering checks are applied.
        """
        details = self.calculator.vault_details(vault)
        validate_vault(vault, details)

        dust = self.oracle.get_dust_limit(vault.collateral_assets[0]) if vault.has_collateral else 0
        if not details.has_short or now >= details.short.expiry:
            return LiquidationStatus(False, 0, 0, dust)

        price, start_time = self.oracle.get_historical_price(details.short.underlying, round_id)
        _, is_excess = self.calculator.historical_excess_naked_margin(vault, price, start_time)
        return LiquidationStatus(not is_excess, price, start_time, dust)

    def verify_dust_limit(self, vault: Vault) -> bool:
        """
        True when the vault's remaining collateral is above the asset's dust limit.

        A vault without collateral always passes.

        Raises:
            NoDustLimitConfigured: if the collateral asset has no registered minimum
        """
        check_vault_shape(vault)
        if not vault.has_collateral:
            return True

        asset = vault.collateral_assets[0]
        dust = self.oracle.get_dust_limit(asset)
        if not dust:
            raise NoDustLimitConfigured(f"No dust limit configured for {asset}")
        return vault.collateral_amount > dust

    def _worst_case_price(self, strike_price: int, price: int, is_put: bool) -> FixedPoint:
        strike = FixedPoint.from_scaled(strike_price, BASE_DECIMALS)
        spot = FixedPoint.from_scaled(price, BASE_DECIMALS)
        deviation = self.config.deviation.mul(spot)

        if is_put:
            return fp_max(strike.sub(spot).sub(deviation), ZERO)

        payoff = fp_max(spot.sub(deviation).sub(strike), ZERO)
        if payoff.is_equal(ZERO):
            return ZERO
        return payoff.div(spot)
