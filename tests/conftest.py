"""
conftest.py - Shared pytest fixtures for vamm tests

Provides the deployed trio used across unit, conformance and functional tests:
- A collateral token with nothing minted
- A CollateralLedger owned by "owner"
- A PricingEngine bound to that ledger, seeded with 3.5M base / 1000 quote
- A fund() helper that mints, approves and deposits for a user
"""

import pytest

from vamm import Token, CollateralLedger, PricingEngine


WEI = 10 ** 18
INITIAL_BASE_RESERVE = 3_500_000 * WEI
INITIAL_QUOTE_RESERVE = 1_000 * WEI
OWNER = "owner"


@pytest.fixture
def usdc() -> Token:
    return Token("MUSDC", "Mock USDC")


@pytest.fixture
def vault(usdc) -> CollateralLedger:
    return CollateralLedger(usdc, owner=OWNER, verbose=False)


@pytest.fixture
def unbound_engine(vault) -> PricingEngine:
    """Engine deployed but not yet bound to the ledger."""
    return PricingEngine(vault, INITIAL_BASE_RESERVE, INITIAL_QUOTE_RESERVE, verbose=False)


@pytest.fixture
def engine(vault, unbound_engine) -> PricingEngine:
    vault.bind_engine(OWNER, unbound_engine.address)
    return unbound_engine


@pytest.fixture
def fund(usdc, vault):
    """Return a helper that mints amount to user and deposits all of it."""
    def _fund(user: str, amount: int) -> None:
        usdc.mint(user, amount)
        usdc.approve(user, vault.address, amount)
        vault.deposit(user, amount)
    return _fund

