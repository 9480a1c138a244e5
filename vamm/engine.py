"""
engine.py - Constant-Product Pricing Engine

The PricingEngine owns the two reserves of the curve and every user's open
positions. Swap math lives in curve.py; this module commits the results and
moves margin through the CollateralLedger it is bound to.

Execution of each operation is all-or-nothing:
    1. Snapshot reserves and the user's position list
    2. Apply the steps in order (reserves, ledger call, position list)
    3. On any exception restore the snapshot and re-raise

Position storage:
    Each user owns a list of Position records. Closing index i moves the last
    record into slot i and shrinks the list, so removal is O(1) and order is
    not preserved. A position's index is unstable across any close by the
    same user.
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple

from .arithmetic import require_uint
from .collateral import CollateralLedger
from .core import (
    # Types
    Address, Direction, Position, ReserveState, SwapResult, EventLog,
    PositionOpened, PositionClosed,
    # Exceptions
    InvalidIndex,
)
from .curve import initial_state, compute_open, compute_close, product_drift


class PricingEngine:
    """
    Virtual AMM pricing positions off a fixed reserve product.

    Invariants:
        - k = base * quote is fixed at construction
        - 0 <= k - base * quote < max(base, quote) after every operation
        - both reserves stay strictly positive

    Thread Safety:
        Not thread-safe. Each thread should maintain its own instance.

    Example:
        engine = PricingEngine(vault, base_reserve=3_500_000, quote_reserve=1_000)
        vault.bind_engine("admin", engine.address)
        index = engine.open_position("alice", 200, is_long=True)
        credit = engine.close_position("alice", index)
    """

    def __init__(
        self,
        ledger: CollateralLedger,
        base_reserve: int,
        quote_reserve: int,
        address: Address = "pricing_engine",
        verbose: bool = True,
    ):
        """
        Create an engine over a fresh curve.

        Args:
            ledger: Collateral ledger whose margin this engine moves
            base_reserve: Initial base reserve (strictly positive)
            quote_reserve: Initial quote reserve (strictly positive)
            address: Identity presented to the ledger's privileged calls
            verbose: Print a status line for each operation (default: True)

        Raises:
            ValueError: If a reserve is zero, negative or not an int
        """
        if not address or not address.strip():
            raise ValueError("address cannot be empty")
        self.ledger = ledger
        self.address = address
        self.verbose = verbose
        self._reserves: ReserveState = initial_state(base_reserve, quote_reserve)
        self._k: int = self._reserves.product
        self._positions: Dict[Address, List[Position]] = {}
        self.event_log: EventLog = []
        self._next_sequence = 0

    # ========================================================================
    # VIEWS
    # ========================================================================

    @property
    def reserves(self) -> ReserveState:
        return self._reserves

    @property
    def base_reserve(self) -> int:
        return self._reserves.base

    @property
    def quote_reserve(self) -> int:
        return self._reserves.quote

    @property
    def total_reserve_product(self) -> int:
        """The invariant k fixed at construction."""
        return self._k

    def position_of(self, user: Address, index: int) -> Position:
        """
        Return user's position at index.

        Raises:
            InvalidIndex: If index is out of range
        """
        positions = self._positions.get(user, [])
        self._check_index(positions, index)
        return positions[index]

    def positions_of(self, user: Address) -> Tuple[Position, ...]:
        return tuple(self._positions.get(user, ()))

    def position_count(self, user: Address) -> int:
        return len(self._positions.get(user, ()))

    def preview_open(self, amount: int, is_long: bool) -> SwapResult:
        """Compute an open against current reserves without committing it."""
        return compute_open(self._reserves, self._k, amount, Direction.from_is_long(is_long))

    def preview_close(self, user: Address, index: int) -> SwapResult:
        """Compute the close of user's position at index without committing it."""
        return compute_close(self._reserves, self._k, self.position_of(user, index))

    def verify_invariants(self) -> Dict[str, Any]:
        """
        Verify the reserve invariant within its rounding bound.

        Returns:
            Dict with keys:
            - 'valid': bool - True if the product is within bounds
            - 'k': int - Product fixed at construction
            - 'product': int - Current base * quote
            - 'drift': int - k - product
            - 'discrepancies': List[Dict] - Details of any violation
        """
        reserves = self._reserves
        drift = product_drift(reserves, self._k)
        bound = max(reserves.base, reserves.quote)
        discrepancies = []
        if drift < 0:
            discrepancies.append({'error': 'product exceeds k', 'drift': drift})
        elif drift >= bound:
            discrepancies.append({'error': 'drift exceeds rounding bound', 'drift': drift, 'bound': bound})
        if reserves.base <= 0 or reserves.quote <= 0:
            discrepancies.append({'error': 'reserve exhausted', 'reserves': reserves})
        return {
            'valid': len(discrepancies) == 0,
            'k': self._k,
            'product': reserves.product,
            'drift': drift,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # TRADING (Mutating)
    # ========================================================================

    def open_position(self, user: Address, amount: int, is_long: bool) -> int:
        """
        Open a position of size amount, debiting the same amount of margin.

        Args:
            user: Trader opening the position
            amount: Base-side size, debited from user's leveraged balance
            is_long: True for long, False for short

        Returns:
            Index of the new position in user's list

        Raises:
            ZeroAmount: If amount is 0
            ReserveExhausted: If a short would take the whole base reserve
            InsufficientCollateral: If user's leveraged balance is below amount
        """
        direction = Direction.from_is_long(is_long)
        with self._atomic(user, "open"):
            swap = compute_open(self._reserves, self._k, amount, direction)
            self._reserves = swap.reserves_after
            # Raises InsufficientCollateral; _atomic restores the reserves
            self.ledger.debit_margin(self.address, user, amount)
            positions = self._positions.setdefault(user, [])
            positions.append(Position(output_amount=swap.amount, direction=direction))
            index = len(positions) - 1

        self._emit(PositionOpened(self._take_sequence(), user, is_long, swap.amount))
        if self.verbose:
            print(f"✓ APPLIED: OPEN {direction.value} {amount} by {user} "
                  f"→ output {swap.amount} [{index}] {self._reserves}")
        return index

    def close_position(self, user: Address, index: int) -> int:
        """
        Close user's position at index against current reserves.

        The last position in user's list takes over index afterwards.

        Returns:
            Margin credited back to user

        Raises:
            InvalidIndex: If index is out of range
        """
        with self._atomic(user, "close"):
            positions = self._positions.get(user, [])
            self._check_index(positions, index)
            position = positions[index]
            swap = compute_close(self._reserves, self._k, position)
            self._reserves = swap.reserves_after
            positions[index] = positions[-1]
            positions.pop()
            self.ledger.credit_margin(self.address, user, swap.amount)

        self._emit(PositionClosed(self._take_sequence(), user, position.is_long, swap.amount))
        if self.verbose:
            print(f"✓ APPLIED: CLOSE {position.direction.value} [{index}] by {user} "
                  f"→ credit {swap.amount} {self._reserves}")
        return swap.amount

    @contextmanager
    def _atomic(self, user: Address, operation: str) -> Iterator[None]:
        """Restore reserves and user's positions if the wrapped block raises."""
        saved_reserves = self._reserves
        had_positions = user in self._positions
        saved_positions = list(self._positions.get(user, ()))
        try:
            yield
        except Exception as e:
            self._reserves = saved_reserves
            if had_positions:
                self._positions[user] = saved_positions
            else:
                self._positions.pop(user, None)
            if self.verbose:
                print(f"✗ REJECTED: {operation} by {user}: {e}")
            raise

    @staticmethod
    def _check_index(positions: List[Position], index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidIndex(f"Invalid position index {index!r}")
        if index < 0 or index >= len(positions):
            raise InvalidIndex(f"Invalid position index {index}, {len(positions)} open")

    # ========================================================================
    # AUDIT TRAIL
    # ========================================================================

    def _take_sequence(self) -> int:
        sequence = self._next_sequence
        self._next_sequence += 1
        return sequence

    def _emit(self, event) -> None:
        self.event_log.append(event)
