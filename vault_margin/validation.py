"""
validation.py - Structural checks run before any margin computation

A vault is computable only when:
- every leg holds at most one entry and its asset/amount lengths match
- a long leg, if paired with a short, is the same series (underlying, strike,
  collateral, expiry, type) but a different instrument
- posted collateral is the collateral asset of the short leg (else the long)
"""

from __future__ import annotations

from .core import (
    InvalidVaultShape, UnmarginableCollateral, UnmarginableLong,
    Vault, VaultDetails,
)


def check_vault_shape(vault: Vault) -> None:
    """
    Reject vaults with more than one entry per leg or mismatched lengths.

    Raises:
        InvalidVaultShape: naming the offending leg
    """
    legs = (
        ('short', vault.short_otokens, vault.short_amounts),
        ('long', vault.long_otokens, vault.long_amounts),
        ('collateral', vault.collateral_assets, vault.collateral_amounts),
    )
    for name, assets, amounts in legs:
        if len(assets) > 1:
            raise InvalidVaultShape(f"Too many {name} assets in the vault: {len(assets)}")
        if len(assets) != len(amounts):
            raise InvalidVaultShape(
                f"{name} assets and amounts mismatch: {len(assets)} != {len(amounts)}"
            )


def is_marginable_long(vault: Vault, details: VaultDetails) -> bool:
    """True when there is nothing to pair, or the long offsets the short exactly."""
    if not details.has_long or not details.has_short:
        return True

    return (
        vault.long_otokens[0] != vault.short_otokens[0]
        and details.long.matches(details.short)
    )


def is_marginable_collateral(vault: Vault, details: VaultDetails) -> bool:
    """True when no collateral is posted or it is the governing leg's collateral asset."""
    if not vault.has_collateral:
        return True

    governing = details.governing
    if governing is None:
        return True
    return vault.collateral_assets[0] == governing.collateral


def validate_vault(vault: Vault, details: VaultDetails) -> None:
    """
    Run every structural check against an already-resolved vault.

    Raises:
        InvalidVaultShape, UnmarginableLong, UnmarginableCollateral
    """
    check_vault_shape(vault)

    if not is_marginable_long(vault, details):
        raise UnmarginableLong("Long asset not marginable for short asset")

    if not is_marginable_collateral(vault, details):
        raise UnmarginableCollateral("Collateral asset not marginable for short asset")
