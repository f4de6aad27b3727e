"""
conftest.py - Shared pytest fixtures for vault_margin tests

Provides:
- The WETH/USDC market from tests.scenario (oracle, tokens, assets)
- A MarginCalculator and LiquidationEngine wired to that market
- Expiry prices recorded and finalized at EXPIRY
"""

import pytest

from vault_margin import LiquidationConfig, LiquidationEngine, MarginCalculator

from tests.scenario import EXPIRY, build_market, price


# =============================================================================
# MARKET FIXTURES
# =============================================================================

@pytest.fixture
def market():
    """(oracle, tokens, assets) for the shared scenario."""
    return build_market()


@pytest.fixture
def oracle(market):
    return market[0]


@pytest.fixture
def tokens(market):
    return market[1]


@pytest.fixture
def assets(market):
    return market[2]


@pytest.fixture
def settled_oracle(oracle):
    """Oracle with WETH settled at $1500 and USDC at $1 for EXPIRY."""
    oracle.set_expiry_price("WETH", EXPIRY, price(1500))
    oracle.set_expiry_price("USDC", EXPIRY, price(1))
    return oracle


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def calculator(oracle, tokens, assets):
    return MarginCalculator(oracle, tokens, assets, verbose=False)


@pytest.fixture
def liquidation_engine(calculator):
    """Engine with no deviation tolerance."""
    return LiquidationEngine(calculator, LiquidationConfig(deviation_factor=0))
