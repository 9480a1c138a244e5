"""
curve.py - Constant-Product Swap Math

Pure functions computing swaps against two reserves held under a fixed
product k = base * quote. No function here mutates anything: each returns a
SwapResult describing the reserves to commit and the amount produced, and the
PricingEngine decides whether to commit it.

=== THE CURVE ===

Opening a LONG of size a adds a to base and removes quote:
    new_base  = base + a
    new_quote = k // new_base
    output    = quote - new_quote

Opening a SHORT of size a removes a from base and adds quote:
    new_base  = base - a            (requires a < base)
    new_quote = k // new_base
    output    = new_quote - quote

Closing reverses the swap on the quote side, against the reserves at close
time rather than those at open time:
    LONG:  new_quote = quote + output,  new_base = k // new_quote,  credit = base - new_base
    SHORT: new_quote = quote - output,  new_base = k // new_quote,  credit = new_base - base

Floor division is the only rounding rule. After any step the product sits in
(k - max(base, quote), k], so a close issued right after its own open, from a
state with base * quote == k, returns exactly the opening amount.
"""

from __future__ import annotations

from .arithmetic import require_uint, checked_sub
from .core import (
    Direction, Position, ReserveState, SwapResult,
    ZeroAmount, ReserveExhausted,
)


def initial_state(base: int, quote: int) -> ReserveState:
    """
    Validate construction-time reserves.

    Raises:
        ValueError: If either reserve is not a strictly positive unsigned int
    """
    require_uint("base", base)
    require_uint("quote", quote)
    if base == 0 or quote == 0:
        raise ValueError(f"reserves must be strictly positive, got base={base}, quote={quote}")
    return ReserveState(base=base, quote=quote)


def compute_open(reserves: ReserveState, k: int, amount: int, direction: Direction) -> SwapResult:
    """
    Compute the swap for opening a position of size amount.

    Args:
        reserves: Current reserves
        k: Invariant product fixed at construction
        amount: Base-side size of the position (margin to debit)
        direction: LONG or SHORT

    Returns:
        SwapResult whose amount is the quote output to record on the position

    Raises:
        ZeroAmount: If amount is 0
        ReserveExhausted: If a short would take the whole base reserve or more
    """
    require_uint("amount", amount)
    if amount == 0:
        raise ZeroAmount("Open position amount must not be 0")

    if direction is Direction.LONG:
        new_base = reserves.base + amount
        new_quote = k // new_base
        output = checked_sub(reserves.quote, new_quote)
    else:
        if amount >= reserves.base:
            raise ReserveExhausted(
                f"short of {amount} would exhaust base reserve {reserves.base}"
            )
        new_base = reserves.base - amount
        new_quote = k // new_base
        output = checked_sub(new_quote, reserves.quote)

    _require_live(new_base, new_quote)
    return SwapResult(
        reserves_before=reserves,
        reserves_after=ReserveState(base=new_base, quote=new_quote),
        amount=output,
        direction=direction,
    )


def compute_close(reserves: ReserveState, k: int, position: Position) -> SwapResult:
    """
    Compute the counter-swap that closes position against current reserves.

    Returns:
        SwapResult whose amount is the margin to credit back

    Raises:
        ReserveExhausted: If a short close would empty the quote reserve
        ArithmeticUnderflow: If rounding drift makes the credit negative
    """
    if position.is_long:
        new_quote = reserves.quote + position.output_amount
        new_base = k // new_quote
        credit = checked_sub(reserves.base, new_base)
    else:
        new_quote = checked_sub(reserves.quote, position.output_amount)
        if new_quote == 0:
            raise ReserveExhausted(
                f"closing short of {position.output_amount} would empty quote reserve"
            )
        new_base = k // new_quote
        credit = checked_sub(new_base, reserves.base)

    _require_live(new_base, new_quote)
    return SwapResult(
        reserves_before=reserves,
        reserves_after=ReserveState(base=new_base, quote=new_quote),
        amount=credit,
        direction=position.direction,
    )


def _require_live(new_base: int, new_quote: int) -> None:
    # Both reserves must stay strictly positive for k // reserve to be defined.
    if new_base == 0 or new_quote == 0:
        raise ReserveExhausted(
            f"swap would empty a reserve (base={new_base}, quote={new_quote})"
        )


def product_drift(reserves: ReserveState, k: int) -> int:
    """Return k - base * quote, the rounding shortfall of the current product."""
    return k - reserves.product
