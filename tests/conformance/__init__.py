"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the vamm system.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. curve_invariant.py - Reserve product stays within its rounding bound
2. conservation.py - Margin and custody accounting
3. atomicity.py - All-or-nothing operation semantics
4. authorization.py - Owner and engine privileges
5. determinism.py - Reproducible behavior

These tests use hypothesis for property-based testing.
"""
