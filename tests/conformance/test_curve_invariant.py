"""
Curve Invariant Conformance Tests

INVARIANT: The reserve product never exceeds k and never drifts far below it.

    ∀ state S reachable by opens and closes:
        0 <= k - S.base * S.quote < max(S.base, S.quote)
        S.base > 0 and S.quote > 0

Floor division is the only source of drift; each step loses less than one
unit of the reserve it divides by.
"""

from hypothesis import given, settings, note
from hypothesis import strategies as st

from vamm import (
    Token, CollateralLedger, PricingEngine,
    Direction, Position, ReserveState, compute_open, compute_close, product_drift,
    VammError,
)


WEI = 10 ** 18

reserve_amounts = st.integers(min_value=1, max_value=10 ** 30)
trade_amounts = st.integers(min_value=1, max_value=10 ** 24)

operations = st.lists(
    st.tuples(
        st.sampled_from(["open", "close"]),
        st.integers(min_value=1, max_value=10_000 * WEI),
        st.booleans(),
        st.integers(min_value=0, max_value=5),
    ),
    min_size=1,
    max_size=30,
)


def assert_within_bound(reserves: ReserveState, k: int) -> None:
    drift = product_drift(reserves, k)
    assert reserves.base > 0 and reserves.quote > 0
    assert 0 <= drift < max(reserves.base, reserves.quote), (reserves, drift)


class TestSingleSwapBound:
    """The bound holds after a single pure open or close from any exact state."""

    @given(reserve_amounts, reserve_amounts, trade_amounts, st.booleans())
    @settings(max_examples=300)
    def test_open_stays_within_bound(self, base, quote, amount, is_long):
        reserves = ReserveState(base, quote)
        k = reserves.product
        try:
            swap = compute_open(reserves, k, amount, Direction.from_is_long(is_long))
        except VammError as e:
            note(f"rejected: {e}")
            return
        assert_within_bound(swap.reserves_after, k)

    @given(reserve_amounts, reserve_amounts, trade_amounts, st.booleans())
    @settings(max_examples=300)
    def test_open_then_close_stays_within_bound(self, base, quote, amount, is_long):
        reserves = ReserveState(base, quote)
        k = reserves.product
        direction = Direction.from_is_long(is_long)
        try:
            opened = compute_open(reserves, k, amount, direction)
            closed = compute_close(
                opened.reserves_after, k, Position(opened.amount, direction)
            )
        except VammError as e:
            note(f"rejected: {e}")
            return
        assert_within_bound(closed.reserves_after, k)


class TestEngineSequenceBound:
    """The bound holds across arbitrary interleavings on a live engine."""

    @given(operations)
    @settings(max_examples=100)
    def test_random_operations_keep_invariant(self, ops):
        usdc = Token("MUSDC", "Mock USDC")
        vault = CollateralLedger(usdc, owner="owner", verbose=False)
        engine = PricingEngine(vault, 3_500_000 * WEI, 1_000 * WEI, verbose=False)
        vault.bind_engine("owner", engine.address)

        usdc.mint("alice", 1_000_000 * WEI)
        usdc.approve("alice", vault.address, 1_000_000 * WEI)
        vault.deposit("alice", 1_000_000 * WEI)

        k = engine.total_reserve_product
        for kind, amount, is_long, index in ops:
            note(f"{kind} amount={amount} long={is_long} index={index}")
            try:
                if kind == "open":
                    engine.open_position("alice", amount, is_long)
                else:
                    engine.close_position("alice", index)
            except VammError as e:
                note(f"rejected: {e}")
            assert engine.total_reserve_product == k
            assert_within_bound(engine.reserves, k)
            assert engine.verify_invariants()['valid']
