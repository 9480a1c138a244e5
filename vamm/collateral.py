"""
collateral.py - Collateral Custody and Leveraged Margin Ledger

The CollateralLedger holds users' real collateral and tracks the leveraged
balance each deposit buys. It is the only component that mutates balances.

Key responsibilities:
    - Custody: deposit pulls the asset in, withdraw pays it back out
    - Leverage: every deposited unit grants MAX_LEVERAGE units of margin
    - Privileged margin movement: debit_margin / credit_margin may only be
      called by the pricing engine bound (once) by the ledger owner
    - Audit trail: every applied operation appends an event to event_log

Every operation validates before it mutates, so a raised error always leaves
balances, custody and the event log exactly as they were.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Any, Dict, List, Optional

from .arithmetic import MAX_LEVERAGE, require_uint, checked_add, checked_mul
from .core import (
    # Types
    Address, BalanceMap, FungibleAsset, EventLog,
    Deposited, Withdrawn, EngineBound,
    # Exceptions
    Unauthorized, AlreadyBound, InsufficientBalance, InsufficientCollateral,
)


class CollateralLedger:
    """
    Per-user custody and leveraged balance accounting.

    Invariants:
        - leveraged_balance_of(user) is never negative
        - leveraged balance == deposited * MAX_LEVERAGE, adjusted by every
          margin debit and credit issued by the bound engine
        - sum of deposits == asset balance held at this ledger's address

    Thread Safety:
        Not thread-safe. Each thread should maintain its own instance.

    Example:
        usdc = Token("USDC", "Mock USDC")
        vault = CollateralLedger(usdc, owner="admin")
        usdc.mint("alice", 100)
        usdc.approve("alice", vault.address, 100)
        vault.deposit("alice", 100)
        vault.leveraged_balance_of("alice")   # 1000
    """

    def __init__(
        self,
        asset: FungibleAsset,
        owner: Address,
        address: Address = "collateral_ledger",
        verbose: bool = True,
    ):
        """
        Create a ledger.

        Args:
            asset: Collateral asset held in custody
            owner: Identity allowed to bind the pricing engine
            address: This ledger's own identity on the asset
            verbose: Print a status line for each operation (default: True)
        """
        if not owner or not owner.strip():
            raise ValueError("owner cannot be empty")
        if not address or not address.strip():
            raise ValueError("address cannot be empty")
        self.asset = asset
        self.owner = owner
        self.address = address
        self.verbose = verbose
        self._deposited: BalanceMap = defaultdict(int)
        self._leveraged: BalanceMap = defaultdict(int)
        # Engine binding: explicit flag, never a sentinel address
        self._engine: Optional[Address] = None
        self._engine_bound = False
        self.event_log: EventLog = []
        self._next_sequence = 0

    # ========================================================================
    # VIEWS
    # ========================================================================

    @property
    def engine(self) -> Optional[Address]:
        """Address of the bound pricing engine, or None before binding."""
        return self._engine

    @property
    def engine_bound(self) -> bool:
        return self._engine_bound

    def leveraged_balance_of(self, user: Address) -> int:
        """Spendable margin capacity of user."""
        return self._leveraged.get(user, 0)

    def account_value(self, user: Address) -> int:
        """
        Value of user's account.

        Currently the same stored quantity as leveraged_balance_of; open
        positions are not marked to market here.
        """
        return self._leveraged.get(user, 0)

    def deposited_of(self, user: Address) -> int:
        """Real collateral held in custody for user."""
        return self._deposited.get(user, 0)

    def custody_balance(self) -> int:
        """Asset balance actually held at this ledger's address."""
        return self.asset.balance_of(self.address)

    def list_accounts(self) -> List[Address]:
        """Users that have ever held a deposit or margin, sorted."""
        return sorted(set(self._deposited) | set(self._leveraged))

    def verify_custody(self) -> Dict[str, Any]:
        """
        Verify that recorded deposits are fully backed by custody.

        Returns:
            Dict with keys:
            - 'valid': bool - True if sum of deposits equals custody balance
            - 'deposited_total': int - Sum of all recorded deposits
            - 'custody': int - Asset balance held by this ledger
            - 'discrepancies': List[Dict] - Details of any violation
        """
        deposited_total = sum(self._deposited[u] for u in sorted(self._deposited))
        custody = self.custody_balance()
        discrepancies = []
        if deposited_total != custody:
            discrepancies.append({
                'deposited_total': deposited_total,
                'custody': custody,
                'difference': custody - deposited_total,
            })
        for user in self.list_accounts():
            if self.leveraged_balance_of(user) < 0:
                discrepancies.append({'user': user, 'error': 'negative leveraged balance'})
        return {
            'valid': len(discrepancies) == 0,
            'deposited_total': deposited_total,
            'custody': custody,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # USER OPERATIONS (Mutating)
    # ========================================================================

    def deposit(self, user: Address, amount: int) -> None:
        """
        Move amount of the asset from user into custody and grant margin.

        user must have approved this ledger's address on the asset.

        Raises:
            InsufficientAllowance: If user has not approved enough
            InsufficientFunds: If user holds less than amount
            ArithmeticOverflow: If a balance would exceed UINT256_MAX
        """
        require_uint("amount", amount)
        new_deposited = checked_add(self.deposited_of(user), amount)
        new_leveraged = checked_add(
            self.leveraged_balance_of(user), checked_mul(amount, MAX_LEVERAGE)
        )

        # Asset transfer raises without side effects on failure
        self.asset.transfer_from(self.address, user, self.address, amount)

        self._deposited[user] = new_deposited
        self._leveraged[user] = new_leveraged
        self._emit(Deposited(self._take_sequence(), user, amount))
        self._print_result(f"DEPOSIT {amount} by {user} (leveraged={new_leveraged})")

    def withdraw(self, user: Address, amount: int) -> None:
        """
        Return amount of the asset to user, releasing the matching margin.

        Raises:
            InsufficientBalance: If user's leveraged balance does not cover
                amount * MAX_LEVERAGE, or amount exceeds the user's deposit
        """
        require_uint("amount", amount)
        required = checked_mul(amount, MAX_LEVERAGE)
        leveraged = self.leveraged_balance_of(user)
        deposited = self.deposited_of(user)
        if leveraged < required:
            self._print_rejected(f"{user} leveraged {leveraged} < {required}")
            raise InsufficientBalance(
                f"Insufficient balance: {user} has {leveraged} leveraged, withdrawal needs {required}"
            )
        if deposited < amount:
            self._print_rejected(f"{user} deposited {deposited} < {amount}")
            raise InsufficientBalance(
                f"Insufficient balance: {user} deposited {deposited}, requested {amount}"
            )

        self.asset.transfer(self.address, user, amount)

        self._deposited[user] = deposited - amount
        self._leveraged[user] = leveraged - required
        self._emit(Withdrawn(self._take_sequence(), user, amount))
        self._print_result(f"WITHDRAW {amount} to {user} (leveraged={leveraged - required})")

    # ========================================================================
    # PRIVILEGED OPERATIONS (Mutating)
    # ========================================================================

    def bind_engine(self, caller: Address, engine: Address) -> None:
        """
        Bind the pricing engine allowed to move margin. Settable exactly once.

        Raises:
            AlreadyBound: If an engine is already bound (whoever calls)
            Unauthorized: If caller is not the owner
        """
        if self._engine_bound:
            self._print_rejected(f"engine already bound to {self._engine}")
            raise AlreadyBound(f"Engine address has been set to {self._engine}")
        if caller != self.owner:
            self._print_rejected(f"{caller} is not the owner")
            raise Unauthorized(f"Only the owner can bind the engine, called by {caller}")
        if not engine or not engine.strip():
            raise ValueError("engine address cannot be empty")

        self._engine = engine
        self._engine_bound = True
        self._emit(EngineBound(self._take_sequence(), engine))
        self._print_result(f"BIND engine {engine}")

    def debit_margin(self, caller: Address, user: Address, amount: int) -> None:
        """
        Reserve amount of user's leveraged balance for a new position.

        Raises:
            Unauthorized: If caller is not the bound engine
            InsufficientCollateral: If user's leveraged balance is below amount
        """
        self._require_engine(caller)
        require_uint("amount", amount)
        leveraged = self.leveraged_balance_of(user)
        if leveraged < amount:
            self._print_rejected(f"{user} leveraged {leveraged} < margin {amount}")
            raise InsufficientCollateral(
                f"Insufficient Collateral: {user} has {leveraged}, position needs {amount}"
            )
        self._leveraged[user] = leveraged - amount
        if self.verbose:
            print(f"✓ DEBIT {amount} from {user} (leveraged={leveraged - amount})")

    def credit_margin(self, caller: Address, user: Address, amount: int) -> None:
        """
        Release amount of margin back to user when a position closes.

        Raises:
            Unauthorized: If caller is not the bound engine
            ArithmeticOverflow: If the balance would exceed UINT256_MAX
        """
        self._require_engine(caller)
        require_uint("amount", amount)
        new_leveraged = checked_add(self.leveraged_balance_of(user), amount)
        self._leveraged[user] = new_leveraged
        if self.verbose:
            print(f"✓ CREDIT {amount} to {user} (leveraged={new_leveraged})")

    def _require_engine(self, caller: Address) -> None:
        # Capability check against the bound identity
        if not self._engine_bound or caller != self._engine:
            self._print_rejected(f"{caller} is not the bound engine")
            raise Unauthorized(f"Only the bound engine can call this function, called by {caller}")

    # ========================================================================
    # AUDIT TRAIL
    # ========================================================================

    def _take_sequence(self) -> int:
        sequence = self._next_sequence
        self._next_sequence += 1
        return sequence

    def _emit(self, event) -> None:
        self.event_log.append(event)

    def _print_result(self, message: str) -> None:
        if self.verbose:
            print(f"✓ APPLIED: {message}")

    def _print_rejected(self, reason: str) -> None:
        if self.verbose:
            print(f"✗ REJECTED: {reason}")
