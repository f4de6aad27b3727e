"""
calculator.py - Collateral requirements and excess collateral for vaults

MarginCalculator resolves a vault's legs through the injected token and asset
services, validates the vault, then picks a branch:

    expired (now >= governing expiry)   net settlement obligation
    SPREAD                              max-loss of short net of long
    NAKED                               naked margin curve at live spot

Every branch returns (required, deposited) in collateral terms as
FixedPoint; excess_collateral() projects their difference back to the
collateral asset's decimals.

Key Formulas (SPREAD, live):
    put  = max(short_amount * short_strike - long_strike * min(short_amount, long_amount), 0)
    call = max(short_amount - long_amount, 0)                        if long_strike == 0
           max((long_strike - short_strike) * short_amount / long_strike,
               max(short_amount - long_amount, 0))                   otherwise
"""

from __future__ import annotations
from typing import Tuple

from .core import (
    BASE_DECIMALS,
    AlreadyExpired, AssetMetadataSource, MarginKind, OptionDescriptor,
    OptionTokenSource, PriceOracle, Vault, VaultDetails,
)
from .fixed_point import FixedPoint, ZERO, fp_max, fp_min
from .naked_margin import naked_margin_per_unit, naked_margin_required
from .pricing_source import PriceConverter
from .settlement import expired_payout_rate, expired_vault_proceeds
from .validation import check_vault_shape, validate_vault


# ============================================================================
# PURE SPREAD FORMULAS
# ============================================================================

def put_spread_margin_required(
    short_amount: FixedPoint,
    long_amount: FixedPoint,
    short_strike: FixedPoint,
    long_strike: FixedPoint,
) -> FixedPoint:
    """Max loss of a put spread, in strike-asset terms."""
    covered = long_strike.mul(fp_min(short_amount, long_amount))
    return fp_max(short_amount.mul(short_strike).sub(covered), ZERO)


def call_spread_margin_required(
    short_amount: FixedPoint,
    long_amount: FixedPoint,
    short_strike: FixedPoint,
    long_strike: FixedPoint,
) -> FixedPoint:
    """Max loss of a call spread, in underlying-asset terms."""
    uncovered = fp_max(short_amount.sub(long_amount), ZERO)
    if long_strike.is_equal(ZERO):
        return uncovered

    strike_gap = long_strike.sub(short_strike).mul(short_amount).div(long_strike)
    return fp_max(strike_gap, uncovered)


# ============================================================================
# CALCULATOR
# ============================================================================

class MarginCalculator:
    """
    Computes required and excess collateral for vault snapshots.

    The calculator holds no state besides its injected read-only services;
    the current time is passed to every call that depends on it.

    Example:
        calculator = MarginCalculator(oracle, tokens, assets)
        amount, is_excess = calculator.excess_collateral(vault, MarginKind.SPREAD, now)
    """

    def __init__(
        self,
        oracle: PriceOracle,
        tokens: OptionTokenSource,
        assets: AssetMetadataSource,
        verbose: bool = False,
    ):
        """
        Create a calculator.

        Args:
            oracle: Live, expiry and historical prices
            tokens: Option token terms
            assets: Asset decimal counts
            verbose: Print one line per computed result (default: False)
        """
        self.oracle = oracle
        self.tokens = tokens
        self.assets = assets
        self.converter = PriceConverter(oracle)
        self.verbose = verbose

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def describe_option(self, otoken: str) -> OptionDescriptor:
        """Resolve an option token's terms and its collateral decimals."""
        terms = self.tokens.get_option_details(otoken)
        return OptionDescriptor.from_terms(terms, self.assets.get_decimals(terms.collateral))

    def vault_details(self, vault: Vault) -> VaultDetails:
        """
        Resolve every present leg of a vault.

        Raises:
            InvalidVaultShape: before any lookup, if the vault is malformed
        """
        check_vault_shape(vault)

        short = self.describe_option(vault.short_otokens[0]) if vault.has_short else None
        long = self.describe_option(vault.long_otokens[0]) if vault.has_long else None
        governing = short if short is not None else long

        return VaultDetails(
            short=short,
            long=long,
            has_collateral=vault.has_collateral,
            collateral_decimals=governing.collateral_decimals if governing is not None else 0,
        )

    # ------------------------------------------------------------------
    # Public queries
    # ------------------------------------------------------------------

    def excess_collateral(self, vault: Vault, margin_kind, now: int) -> Tuple[int, bool]:
        """
        Collateral a vault holds beyond (or short of) its requirement.

        Args:
            vault: Vault snapshot
            margin_kind: MarginKind or its int selector
            now: Current unix time

        Returns:
            (amount in collateral decimals, is_excess). A vault with no
            option legs reports all of its collateral as excess.
        """
        details = self.vault_details(vault)
        validate_vault(vault, details)

        if not details.has_short and not details.has_long:
            return vault.collateral_amount, True

        required, deposited = self._margin_required(vault, details, margin_kind, now)
        amount, is_excess = self._project_excess(deposited, required, details.collateral_decimals)

        if self.verbose:
            label = "excess" if is_excess else "deficit"
            print(f"[MARGIN] required={required.to_decimal()} deposited={deposited.to_decimal()} {label}={amount}")

        return amount, is_excess

    def margin_required(self, vault: Vault, margin_kind, now: int) -> Tuple[FixedPoint, FixedPoint]:
        """
        Required and deposited collateral, both in collateral terms.

        After expiry the requirement is the vault's net settlement obligation.

        Returns:
            (required, deposited) as FixedPoint
        """
        details = self.vault_details(vault)
        validate_vault(vault, details)

        if not details.has_short and not details.has_long:
            if not vault.has_collateral:
                return ZERO, ZERO
            decimals = self.assets.get_decimals(vault.collateral_assets[0])
            return ZERO, FixedPoint.from_scaled(vault.collateral_amount, decimals)

        return self._margin_required(vault, details, margin_kind, now)

    def naked_margin_required(
        self,
        strike_price: int,
        underlying_price: int,
        expiry: int,
        is_put: bool,
        short_amount: int,
        collateral_decimals: int,
        now: int,
    ) -> int:
        """
        Quote the naked margin for a hypothetical short position.

        Returns:
            Requirement in collateral decimals, rounded up.

        Raises:
            AlreadyExpired: if the option has already expired
        """
        if now >= expiry:
            raise AlreadyExpired(f"Option already expired: expiry {expiry}, now {now}")
        return naked_margin_required(
            strike_price, underlying_price, expiry - now, is_put, short_amount, collateral_decimals,
        )

    def expired_payout_rate(self, otoken: str, now: int) -> int:
        """Collateral redeemable for one whole expired option token."""
        payout = expired_payout_rate(self.converter, self.describe_option(otoken), now)
        if self.verbose:
            print(f"[SETTLEMENT] {otoken} payout per token={payout}")
        return payout

    def historical_excess_naked_margin(self, vault: Vault, price: int, timestamp: int) -> Tuple[int, bool]:
        """
        Naked-margin excess as it stood at a recorded price and time.

        Same as the NAKED branch of excess_collateral() with `price` as the
        underlying spot and `timestamp` as now.
        """
        details = self.vault_details(vault)
        validate_vault(vault, details)

        if not details.has_short and not details.has_long:
            return vault.collateral_amount, True

        deposited = self._deposited(vault, details)
        required = self._naked_margin_required(vault, details, price, timestamp)
        return self._project_excess(deposited, required, details.collateral_decimals)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def _margin_required(
        self,
        vault: Vault,
        details: VaultDetails,
        margin_kind,
        now: int,
    ) -> Tuple[FixedPoint, FixedPoint]:
        deposited = self._deposited(vault, details)

        if now >= details.governing.expiry:
            return expired_vault_proceeds(self.converter, vault, details), deposited

        kind = MarginKind.parse(margin_kind)
        if kind == MarginKind.SPREAD:
            return self._spread_margin_required(vault, details), deposited

        spot = self.oracle.get_price(details.governing.underlying)
        return self._naked_margin_required(vault, details, spot, now), deposited

    def _spread_margin_required(self, vault: Vault, details: VaultDetails) -> FixedPoint:
        governing = details.governing
        short_amount = FixedPoint.from_scaled(vault.short_amount, BASE_DECIMALS)
        long_amount = FixedPoint.from_scaled(vault.long_amount, BASE_DECIMALS)
        short_strike = FixedPoint.from_scaled(details.short.strike_price, BASE_DECIMALS) if details.has_short else ZERO
        long_strike = FixedPoint.from_scaled(details.long.strike_price, BASE_DECIMALS) if details.has_long else ZERO

        if governing.is_put:
            strike_needed = put_spread_margin_required(short_amount, long_amount, short_strike, long_strike)
            return self.converter.convert_live(strike_needed, governing.strike, governing.collateral)

        underlying_needed = call_spread_margin_required(short_amount, long_amount, short_strike, long_strike)
        return self.converter.convert_live(underlying_needed, governing.underlying, governing.collateral)

    def _naked_margin_required(
        self,
        vault: Vault,
        details: VaultDetails,
        spot_price: int,
        timestamp: int,
    ) -> FixedPoint:
        if not details.has_short:
            return ZERO

        short = details.short
        per_unit = naked_margin_per_unit(
            short.strike_price,
            spot_price,
            short.expiry - timestamp,
            short.is_put,
            details.collateral_decimals,
        )
        short_amount = FixedPoint.from_scaled(vault.short_amount, BASE_DECIMALS)
        return FixedPoint.from_scaled(per_unit, details.collateral_decimals).mul(short_amount)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _deposited(vault: Vault, details: VaultDetails) -> FixedPoint:
        if not details.has_collateral:
            return ZERO
        return FixedPoint.from_scaled(vault.collateral_amount, details.collateral_decimals)

    @staticmethod
    def _project_excess(deposited: FixedPoint, required: FixedPoint, decimals: int) -> Tuple[int, bool]:
        excess = deposited.sub(required)
        is_excess = excess.is_greater_or_equal(ZERO)
        # Rounding direction follows the classification: up for excess, down for deficit.
        return excess.to_scaled(decimals, round_up=is_excess), is_excess
