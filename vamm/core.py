"""
Core types for the leveraged trading system.

This module provides the foundational data structures shared by the ledger
and the pricing engine:
1. Protocols: FungibleAsset for the collateral token collaborator
2. Immutable data structures: Position, ReserveState, SwapResult
3. Events: immutable audit records appended to each component's event_log
4. Exceptions: VammError and the domain-specific error types

Nothing in this module holds or mutates state.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Protocol, Union, runtime_checkable


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Identity of a caller, user, or component (an address-like string).
Address = str

# Mapping from account address to an unsigned amount.
BalanceMap = Dict[Address, int]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class FungibleAsset(Protocol):
    """
    Interface of the collateral asset consumed by the CollateralLedger.

    Mirrors standard fungible-token semantics: transfer_from moves funds the
    owner has approved for the spender, transfer moves the sender's own funds.
    Implementations must raise (not return False) on failure and must leave
    their state untouched when they do.
    """

    def balance_of(self, account: Address) -> int:
        """Return the amount held by account (0 if unknown)."""
        ...

    def allowance(self, owner: Address, spender: Address) -> int:
        """Return how much spender may still move on behalf of owner."""
        ...

    def transfer(self, sender: Address, to: Address, amount: int) -> None:
        ...

    def transfer_from(self, spender: Address, owner: Address, to: Address, amount: int) -> None:
        ...


# ============================================================================
# ENUMS
# ============================================================================

class Direction(Enum):
    """
    Side of a position.

    LONG: opened by adding to the base reserve, receives quote.
    SHORT: opened by removing from the base reserve, owes quote.
    """
    LONG = "long"
    SHORT = "short"

    @classmethod
    def from_is_long(cls, is_long: bool) -> Direction:
        return cls.LONG if is_long else cls.SHORT


# ============================================================================
# EXCEPTIONS
# ============================================================================

class VammError(Exception):
    """Base exception for all trading-system errors."""
    pass


class Unauthorized(VammError):
    """Raised when the caller lacks the privileged identity an operation requires."""
    pass


class AlreadyBound(VammError):
    """Raised when the one-time engine binding is attempted a second time."""
    pass


class ZeroAmount(VammError):
    """Raised when a position is opened with a zero amount."""
    pass


class ReserveExhausted(VammError):
    """Raised when a swap would collapse or invert a reserve."""
    pass


class InsufficientCollateral(VammError):
    """Raised when a margin debit exceeds the user's leveraged balance."""
    pass


class InsufficientBalance(VammError):
    """Raised when a withdrawal exceeds the user's entitlement."""
    pass


class InvalidIndex(VammError):
    """Raised when a position index is out of range for the user."""
    pass


class ArithmeticFault(VammError):
    """Base for unsigned arithmetic range violations."""
    pass


class ArithmeticOverflow(ArithmeticFault):
    """Raised when a result would exceed UINT256_MAX."""
    pass


class ArithmeticUnderflow(ArithmeticFault):
    """Raised when a result would go below zero."""
    pass


class AssetError(VammError):
    """Base exception for fungible asset transfer failures."""
    pass


class InsufficientFunds(AssetError):
    """Raised when an account holds less than the amount being transferred."""
    pass


class InsufficientAllowance(AssetError):
    """Raised when a spender has not been approved for the amount being moved."""
    pass


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Position:
    """
    An open trade record owned by one user.

    Attributes:
        output_amount: Quote amount produced by the opening swap.
        direction: LONG or SHORT.

    Positions live in a per-user list. Removal swaps the last record into the
    closed slot, so an index is only valid until the next close by that user.
    """
    output_amount: int
    direction: Direction

    def __post_init__(self):
        if isinstance(self.output_amount, bool) or not isinstance(self.output_amount, int):
            raise ValueError(f"Position output_amount must be int, got {type(self.output_amount)}")
        if self.output_amount < 0:
            raise ValueError(f"Position output_amount must be non-negative, got {self.output_amount}")
        if not isinstance(self.direction, Direction):
            raise ValueError(f"Position direction must be Direction, got {type(self.direction)}")

    @property
    def is_long(self) -> bool:
        return self.direction is Direction.LONG

    def __repr__(self) -> str:
        return f"Position({self.direction.value} {self.output_amount})"


@dataclass(frozen=True, slots=True)
class ReserveState:
    """
    The two reserves of the constant-product curve.

    Both reserves are strictly positive while the curve is live. Integer
    division leaves the product at or slightly below the construction-time k.
    """
    base: int
    quote: int

    @property
    def product(self) -> int:
        return self.base * self.quote

    def __repr__(self) -> str:
        return f"Reserves(base={self.base}, quote={self.quote})"


@dataclass(frozen=True, slots=True)
class SwapResult:
    """
    Outcome of a swap computation, before any state is committed.

    Attributes:
        reserves_before: Reserves the computation started from.
        reserves_after: Reserves to commit if the operation succeeds.
        amount: Output amount on open, margin credit on close.
        direction: Side of the position being opened or closed.
    """
    reserves_before: ReserveState
    reserves_after: ReserveState
    amount: int
    direction: Direction


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Deposited:
    sequence: int
    user: Address
    amount: int


@dataclass(frozen=True, slots=True)
class Withdrawn:
    sequence: int
    user: Address
    amount: int


@dataclass(frozen=True, slots=True)
class EngineBound:
    sequence: int
    engine: Address


@dataclass(frozen=True, slots=True)
class PositionOpened:
    sequence: int
    user: Address
    is_long: bool
    output: int


@dataclass(frozen=True, slots=True)
class PositionClosed:
    sequence: int
    user: Address
    is_long: bool
    credit: int


LedgerEvent = Union[Deposited, Withdrawn, EngineBound]
EngineEvent = Union[PositionOpened, PositionClosed]
EventLog = List[Union[LedgerEvent, EngineEvent]]
