"""
Tests for calculator.py - MarginCalculator

Tests:
- Vaults without option legs
- SPREAD margin for put and call spreads
- NAKED margin at the live spot price
- Settlement obligation after expiry
- Margin kind selection and errors
- Quotes, payout rates and historical naked excess
"""

import pytest

from vault_margin import (
    FixedPoint, ZERO,
    MarginCalculator, MarginKind, single_leg_vault,
    AlreadyExpired, InvalidMarginKind, PriceNotFinalized, TimeOutOfRange, UnknownToken,
)

from tests.scenario import EXPIRY, NOW, USDC_UNIT, WETH_UNIT, price


def put_spread_vault(collateral):
    return single_leg_vault(
        short_otoken="WETH-100-P", short_amount=10 ** 8,
        long_otoken="WETH-90-P", long_amount=10 ** 8,
        collateral_asset="USDC", collateral_amount=collateral,
    )


def naked_put_vault(short_amount, collateral, otoken="WETH-1400-P"):
    return single_leg_vault(
        short_otoken=otoken, short_amount=short_amount,
        collateral_asset="USDC", collateral_amount=collateral,
    )


# =============================================================================
# VAULTS WITHOUT OPTIONS
# =============================================================================

class TestNoOptionLegs:

    def test_all_collateral_is_excess(self, calculator):
        vault = single_leg_vault(collateral_asset="USDC", collateral_amount=500 * USDC_UNIT)
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, NOW) == (500 * USDC_UNIT, True)

    def test_empty_vault(self, calculator):
        assert calculator.excess_collateral(single_leg_vault(), MarginKind.NAKED, NOW) == (0, True)

    def test_margin_required_of_collateral_only(self, calculator):
        vault = single_leg_vault(collateral_asset="WETH", collateral_amount=WETH_UNIT // 2)
        required, deposited = calculator.margin_required(vault, MarginKind.SPREAD, NOW)
        assert required == ZERO
        assert deposited == FixedPoint.from_scaled(5, 1)

    def test_margin_kind_not_consulted(self, calculator):
        vault = single_leg_vault(collateral_asset="USDC", collateral_amount=USDC_UNIT)
        assert calculator.excess_collateral(vault, 99, NOW) == (USDC_UNIT, True)


# =============================================================================
# SPREAD MARGIN
# =============================================================================

class TestSpreadMargin:

    def test_put_spread_exactly_collateralized(self, calculator):
        vault = put_spread_vault(10 * USDC_UNIT)
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, NOW) == (0, True)

        required, deposited = calculator.margin_required(vault, MarginKind.SPREAD, NOW)
        assert required == FixedPoint.from_unscaled(10)
        assert deposited == FixedPoint.from_unscaled(10)

    def test_put_spread_excess(self, calculator):
        vault = put_spread_vault(15 * USDC_UNIT)
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, NOW) == (5 * USDC_UNIT, True)

    def test_put_spread_deficit(self, calculator):
        vault = put_spread_vault(4 * USDC_UNIT)
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, NOW) == (6 * USDC_UNIT, False)

    def test_int_selector(self, calculator):
        vault = put_spread_vault(15 * USDC_UNIT)
        assert calculator.excess_collateral(vault, 0, NOW) == (5 * USDC_UNIT, True)

    def test_naked_short_put_needs_full_strike(self, calculator):
        vault = naked_put_vault(10 ** 8, 1000 * USDC_UNIT)
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, NOW) == (400 * USDC_UNIT, False)

    def test_call_spread_zero_long_strike(self, calculator):
        vault = single_leg_vault(
            short_otoken="WETH-2000-C", short_amount=5 * 10 ** 8,
            long_otoken="WETH-0-C", long_amount=2 * 10 ** 8,
            collateral_asset="WETH", collateral_amount=3 * WETH_UNIT,
        )
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, NOW) == (0, True)

    def test_call_spread_excess_rounds_up(self, calculator):
        vault = single_leg_vault(
            short_otoken="WETH-2000-C", short_amount=10 ** 8,
            long_otoken="WETH-2200-C", long_amount=10 ** 8,
            collateral_asset="WETH", collateral_amount=WETH_UNIT,
        )
        # 1 - 200 / 2200 WETH
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, NOW) == (909_090_909_090_909_091, True)

    def test_long_only_vault(self, calculator):
        vault = single_leg_vault(
            long_otoken="WETH-1900-P", long_amount=10 ** 8,
            collateral_asset="USDC", collateral_amount=100 * USDC_UNIT,
        )
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, NOW) == (100 * USDC_UNIT, True)


# =============================================================================
# NAKED MARGIN
# =============================================================================

class TestNakedMargin:

    def test_naked_put_excess(self, calculator):
        vault = naked_put_vault(10 ** 8, 200 * USDC_UNIT)
        # 200 - 192.404859
        assert calculator.excess_collateral(vault, MarginKind.NAKED, NOW) == (7_595_141, True)

    def test_naked_put_deficit(self, calculator):
        vault = naked_put_vault(2 * 10 ** 8, 200 * USDC_UNIT)
        # 2 * 192.404859 - 200
        assert calculator.excess_collateral(vault, 1, NOW) == (184_809_718, False)

    def test_uses_live_spot(self, oracle, calculator):
        vault = naked_put_vault(10 ** 8, 200 * USDC_UNIT)
        oracle.set_price("WETH", price(1800))
        # 1400 * 4 is no longer below 1800 * 3: c * 1350 + (1400 - 1350)
        amount, is_excess = calculator.excess_collateral(vault, MarginKind.NAKED, NOW)
        assert (amount, is_excess) == (14_466_744, False)

    def test_beyond_curve_horizon(self, calculator):
        vault = naked_put_vault(10 ** 8, 2000 * USDC_UNIT, otoken="WETH-1800-P-FAR")
        with pytest.raises(TimeOutOfRange):
            calculator.excess_collateral(vault, MarginKind.NAKED, NOW)

    def test_long_only_needs_nothing(self, calculator):
        vault = single_leg_vault(
            long_otoken="WETH-1900-P", long_amount=10 ** 8,
            collateral_asset="USDC", collateral_amount=USDC_UNIT,
        )
        assert calculator.excess_collateral(vault, MarginKind.NAKED, NOW) == (USDC_UNIT, True)

    def test_quote(self, calculator):
        quote = calculator.naked_margin_required(price(1400), price(2000), EXPIRY, True, 10 ** 8, 6, NOW)
        assert quote == 192_404_859

    def test_quote_after_expiry(self, calculator):
        with pytest.raises(AlreadyExpired):
            calculator.naked_margin_required(price(1400), price(2000), EXPIRY, True, 10 ** 8, 6, EXPIRY)

    def test_historical_after_expiry(self, calculator):
        vault = naked_put_vault(10 ** 8, 200 * USDC_UNIT)
        with pytest.raises(TimeOutOfRange):
            calculator.historical_excess_naked_margin(vault, price(2000), EXPIRY + 1)

    def test_historical_matches_live(self, calculator):
        vault = naked_put_vault(2 * 10 ** 8, 200 * USDC_UNIT)
        historical = calculator.historical_excess_naked_margin(vault, price(2000), NOW)
        assert historical == calculator.excess_collateral(vault, MarginKind.NAKED, NOW)


# =============================================================================
# EXPIRED VAULTS
# =============================================================================

class TestExpiredVaults:

    def test_short_put_settlement(self, settled_oracle, calculator):
        vault = naked_put_vault(10 ** 8, 1800 * USDC_UNIT, otoken="WETH-1800-P")
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, EXPIRY) == (1500 * USDC_UNIT, True)

    def test_margin_kind_ignored_after_expiry(self, settled_oracle, calculator):
        vault = naked_put_vault(10 ** 8, 1800 * USDC_UNIT, otoken="WETH-1800-P")
        assert calculator.excess_collateral(vault, 7, EXPIRY + 1) == (1500 * USDC_UNIT, True)

    def test_long_payout_is_excess(self, settled_oracle, calculator):
        vault = single_leg_vault(
            short_otoken="WETH-1800-P", short_amount=10 ** 8,
            long_otoken="WETH-1900-P", long_amount=10 ** 8,
        )
        assert calculator.excess_collateral(vault, MarginKind.SPREAD, EXPIRY) == (100 * USDC_UNIT, True)

    def test_worthless_option(self, settled_oracle, calculator):
        vault = naked_put_vault(10 ** 8, 1400 * USDC_UNIT)
        assert calculator.excess_collateral(vault, MarginKind.NAKED, EXPIRY) == (1400 * USDC_UNIT, True)

    def test_requires_final_prices(self, oracle, calculator):
        oracle.set_expiry_price("WETH", EXPIRY, price(1500))
        vault = naked_put_vault(10 ** 8, 1800 * USDC_UNIT, otoken="WETH-1800-P")
        with pytest.raises(PriceNotFinalized):
            calculator.excess_collateral(vault, MarginKind.SPREAD, EXPIRY)

    def test_payout_rate(self, settled_oracle, calculator):
        assert calculator.expired_payout_rate("WETH-1800-P", EXPIRY) == 300 * USDC_UNIT


# =============================================================================
# ERRORS AND LOGGING
# =============================================================================

class TestErrors:

    @pytest.mark.parametrize("kind", [2, -1, "1", None, True])
    def test_invalid_margin_kind(self, calculator, kind):
        vault = put_spread_vault(10 * USDC_UNIT)
        with pytest.raises(InvalidMarginKind):
            calculator.excess_collateral(vault, kind, NOW)

    def test_unknown_token(self, calculator):
        vault = naked_put_vault(10 ** 8, USDC_UNIT, otoken="WETH-9999-P")
        with pytest.raises(UnknownToken):
            calculator.excess_collateral(vault, MarginKind.SPREAD, NOW)


class TestVerbose:

    def test_prints_margin_line(self, market, capsys):
        oracle, tokens, assets = market
        calculator = MarginCalculator(oracle, tokens, assets, verbose=True)
        calculator.excess_collateral(put_spread_vault(15 * USDC_UNIT), MarginKind.SPREAD, NOW)
        assert "[MARGIN]" in capsys.readouterr().out

    def test_silent_by_default(self, calculator, capsys):
        calculator.excess_collateral(put_spread_vault(15 * USDC_UNIT), MarginKind.SPREAD, NOW)
        assert capsys.readouterr().out == ""
