"""
token.py - In-memory fungible asset

A minimal fungible token used as the collateral asset of a CollateralLedger.
Balances and allowances are plain integer maps. Every failing call raises
before touching state, so a rejected transfer never leaves a partial effect.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, Tuple

from .arithmetic import require_uint, checked_add
from .core import Address, BalanceMap, InsufficientFunds, InsufficientAllowance


class Token:
    """
    Fungible asset implementing the FungibleAsset protocol.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own Token instance.

    Example:
        usdc = Token("USDC", "Mock USDC", verbose=False)
        usdc.mint("alice", 100)
        usdc.approve("alice", "collateral_ledger", 100)
        usdc.transfer_from("collateral_ledger", "alice", "collateral_ledger", 100)
    """

    def __init__(self, symbol: str, name: str, verbose: bool = False):
        if not symbol or not symbol.strip():
            raise ValueError("Token symbol cannot be empty")
        self.symbol = symbol
        self.name = name
        self.verbose = verbose
        self._balances: BalanceMap = defaultdict(int)
        self._allowances: Dict[Tuple[Address, Address], int] = defaultdict(int)
        self._total_supply = 0

    # ========================================================================
    # VIEWS
    # ========================================================================

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: Address) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self._allowances.get((owner, spender), 0)

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def mint(self, to: Address, amount: int) -> None:
        """Create amount new units in the to account."""
        require_uint("amount", amount)
        new_supply = checked_add(self._total_supply, amount)
        self._balances[to] += amount
        self._total_supply = new_supply
        if self.verbose:
            print(f"✓ MINT {amount} {self.symbol} → {to}")

    def approve(self, owner: Address, spender: Address, amount: int) -> None:
        """Set (not add to) the amount spender may move on behalf of owner."""
        require_uint("amount", amount)
        self._allowances[(owner, spender)] = amount

    def transfer(self, sender: Address, to: Address, amount: int) -> None:
        """
        Move amount from sender's own balance to to.

        Raises:
            InsufficientFunds: If sender holds less than amount
        """
        require_uint("amount", amount)
        self._move(sender, to, amount)

    def transfer_from(self, spender: Address, owner: Address, to: Address, amount: int) -> None:
        """
        Move amount from owner to to, spending spender's allowance.

        Raises:
            InsufficientAllowance: If spender's allowance from owner is below amount
            InsufficientFunds: If owner holds less than amount
        """
        require_uint("amount", amount)
        remaining = self.allowance(owner, spender)
        if remaining < amount:
            if self.verbose:
                print(f"✗ REJECTED: {spender} allowance {remaining} < {amount} {self.symbol}")
            raise InsufficientAllowance(
                f"{spender} may move {remaining} {self.symbol} from {owner}, requested {amount}"
            )
        self._move(owner, to, amount)
        self._allowances[(owner, spender)] = remaining - amount

    def _move(self, source: Address, dest: Address, amount: int) -> None:
        available = self.balance_of(source)
        if available < amount:
            if self.verbose:
                print(f"✗ REJECTED: {source} holds {available} < {amount} {self.symbol}")
            raise InsufficientFunds(
                f"{source} holds {available} {self.symbol}, requested {amount}"
            )
        self._balances[source] = available - amount
        self._balances[dest] += amount
        if self.verbose:
            print(f"✓ TRANSFER {amount} {self.symbol}: {source} → {dest}")
