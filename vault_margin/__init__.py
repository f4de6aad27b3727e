"""
vault_margin - Collateral, settlement and liquidation pricing for option vaults

A pure calculation engine. Vault storage, token transfers and price feeds are
injected services; every query is deterministic given (vault, prices, now).

Usage:
    from vault_margin import (
        MarginCalculator, MarginKind, RecordedPriceOracle,
        OptionTokenRegistry, AssetRegistry, create_option_terms, single_leg_vault,
    )

    oracle = RecordedPriceOracle({"WETH": 2000 * 10**8, "USDC": 10**8})
    assets = AssetRegistry({"WETH": 18, "USDC": 6})
    tokens = OptionTokenRegistry()
    tokens.register("WETH-1800-P", create_option_terms(
        "WETH", "USDC", "USDC", 1800 * 10**8, expiry, is_put=True))

    calculator = MarginCalculator(oracle, tokens, assets)
    vault = single_leg_vault(
        short_otoken="WETH-1800-P", short_amount=10**8,
        collateral_asset="USDC", collateral_amount=1800 * 10**6,
    )
    amount, is_excess = calculator.excess_collateral(vault, MarginKind.SPREAD, now)
"""

# Core types
from .core import (
    BASE_DECIMALS,
    BASE_UNIT,
    FP_DECIMALS,
    AUCTION_LENGTH,
    MarginKind,
    Vault,
    single_leg_vault,
    OptionTerms,
    OptionDescriptor,
    VaultDetails,
    PriceOracle,
    OptionTokenSource,
    AssetMetadataSource,
    MarginError,
    VaultValidationError,
    InvalidVaultShape,
    UnmarginableLong,
    UnmarginableCollateral,
    PriceUnavailable,
    PriceNotFinalized,
    RoundNotFound,
    DomainRangeError,
    TimeOutOfRange,
    InvalidMarginKind,
    NotExpired,
    AlreadyExpired,
    OrderingError,
    StaleRound,
    OutOfOrderCheck,
    LiquidationError,
    NotUndercollateralized,
    NoDustLimitConfigured,
    FixedPointError,
    FixedPointOverflow,
    DivisionByZero,
    UnknownToken,
    UnknownAsset,
)

# Fixed-point arithmetic
from .fixed_point import FixedPoint, ZERO, ONE, fp_min, fp_max

# Prices
from .pricing_source import RecordedPriceOracle, PriceConverter

# Token and asset metadata
from .tokens import create_option_terms, OptionTokenRegistry, AssetRegistry

# Validation
from .validation import (
    check_vault_shape,
    is_marginable_long,
    is_marginable_collateral,
    validate_vault,
)

# Naked margin curve
from .naked_margin import (
    NAKED_MARGIN_CURVE,
    CURVE_DECIMALS,
    MAX_TIME_TO_EXPIRY,
    curve_value,
    naked_margin_per_unit,
    naked_margin_required,
)

# Settlement
from .settlement import expired_cash_value, expired_vault_proceeds, expired_payout_rate

# Margin
from .calculator import (
    MarginCalculator,
    put_spread_margin_required,
    call_spread_margin_required,
)

# Liquidation
from .liquidation import (
    LiquidationConfig,
    LiquidationStatus,
    LiquidationEngine,
    auction_price,
)

__all__ = [
    # Core
    'BASE_DECIMALS', 'BASE_UNIT', 'FP_DECIMALS', 'AUCTION_LENGTH',
    'MarginKind', 'Vault', 'single_leg_vault', 'OptionTerms', 'OptionDescriptor', 'VaultDetails',
    'PriceOracle', 'OptionTokenSource', 'AssetMetadataSource',
    # Exceptions
    'MarginError', 'VaultValidationError', 'InvalidVaultShape', 'UnmarginableLong',
    'UnmarginableCollateral', 'PriceUnavailable', 'PriceNotFinalized', 'RoundNotFound',
    'DomainRangeError', 'TimeOutOfRange', 'InvalidMarginKind', 'NotExpired', 'AlreadyExpired',
    'OrderingError', 'StaleRound', 'OutOfOrderCheck',
    'LiquidationError', 'NotUndercollateralized', 'NoDustLimitConfigured',
    'FixedPointError', 'FixedPointOverflow', 'DivisionByZero',
    'UnknownToken', 'UnknownAsset',
    # Fixed point
    'FixedPoint', 'ZERO', 'ONE', 'fp_min', 'fp_max',
    # Prices
    'RecordedPriceOracle', 'PriceConverter',
    # Tokens
    'create_option_terms', 'OptionTokenRegistry', 'AssetRegistry',
    # Validation
    'check_vault_shape', 'is_marginable_long', 'is_marginable_collateral', 'validate_vault',
    # Naked margin
    'NAKED_MARGIN_CURVE', 'CURVE_DECIMALS', 'MAX_TIME_TO_EXPIRY',
    'curve_value', 'naked_margin_per_unit', 'naked_margin_required',
    # Settlement
    'expired_cash_value', 'expired_vault_proceeds', 'expired_payout_rate',
    # Margin
    'MarginCalculator', 'put_spread_margin_required', 'call_spread_margin_required',
    # Liquidation
    'LiquidationConfig', 'LiquidationStatus', 'LiquidationEngine', 'auction_price',
]

__version__ = '1.0.0'
