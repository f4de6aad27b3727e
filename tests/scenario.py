"""
scenario.py - Shared market setup for engine tests

A small WETH/USDC market: WETH at $2000, USDC at $1, a family of puts
collateralized in USDC and calls collateralized in WETH, all expiring one
week after NOW unless named otherwise.
"""

from __future__ import annotations
from typing import Tuple

from vault_margin import (
    BASE_UNIT,
    AssetRegistry, OptionTokenRegistry, RecordedPriceOracle,
    create_option_terms,
)


DAY = 86400
NOW = 1_700_000_000
EXPIRY = NOW + 7 * DAY
FAR_EXPIRY = NOW + 35 * DAY

USDC_UNIT = 10 ** 6
WETH_UNIT = 10 ** 18


def price(dollars) -> int:
    """8-decimal price from a whole dollar amount."""
    return int(dollars * BASE_UNIT)


def build_market() -> Tuple[RecordedPriceOracle, OptionTokenRegistry, AssetRegistry]:
    oracle = RecordedPriceOracle({"WETH": price(2000), "USDC": price(1), "WBTC": price(30000)})
    assets = AssetRegistry({"WETH": 18, "USDC": 6, "WBTC": 8})
    tokens = OptionTokenRegistry()

    for strike in (90, 100, 1400, 1800, 1900):
        tokens.register(
            f"WETH-{strike}-P",
            create_option_terms("WETH", "USDC", "USDC", price(strike), EXPIRY, is_put=True),
        )
    for strike in (1500, 2000, 2200):
        tokens.register(
            f"WETH-{strike}-C",
            create_option_terms("WETH", "USDC", "WETH", price(strike), EXPIRY, is_put=False),
        )

    tokens.register(
        "WETH-0-C",
        create_option_terms("WETH", "USDC", "WETH", 0, EXPIRY, is_put=False),
    )
    tokens.register(
        "WETH-1800-P-FAR",
        create_option_terms("WETH", "USDC", "USDC", price(1800), FAR_EXPIRY, is_put=True),
    )
    tokens.register(
        "WETH-1800-P-LATER",
        create_option_terms("WETH", "USDC", "USDC", price(1800), EXPIRY + DAY, is_put=True),
    )
    tokens.register(
        "WBTC-1800-P",
        create_option_terms("WBTC", "USDC", "USDC", price(1800), EXPIRY, is_put=True),
    )
    return oracle, tokens, assets
