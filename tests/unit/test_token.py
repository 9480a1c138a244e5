"""
test_token.py - Unit tests for the in-memory fungible asset

Tests:
- Minting and total supply
- Transfers and failed transfers
- Allowances and transfer_from
"""

import pytest

from vamm import Token, InsufficientFunds, InsufficientAllowance


@pytest.fixture
def token():
    t = Token("MTK", "Mock Token")
    t.mint("alice", 1_000)
    return t


class TestMint:

    def test_mint_credits_balance_and_supply(self, token):
        assert token.balance_of("alice") == 1_000
        assert token.total_supply == 1_000

    def test_unknown_account_has_zero_balance(self, token):
        assert token.balance_of("nobody") == 0

    def test_mint_rejects_negative(self, token):
        with pytest.raises(ValueError):
            token.mint("alice", -5)

    def test_empty_symbol_rejected(self):
        with pytest.raises(ValueError, match="symbol"):
            Token("", "Nameless")


class TestTransfer:

    def test_transfer_moves_balance(self, token):
        token.transfer("alice", "bob", 300)
        assert token.balance_of("alice") == 700
        assert token.balance_of("bob") == 300
        assert token.total_supply == 1_000

    def test_transfer_zero_is_allowed(self, token):
        token.transfer("alice", "bob", 0)
        assert token.balance_of("alice") == 1_000

    def test_transfer_more_than_balance_raises(self, token):
        with pytest.raises(InsufficientFunds):
            token.transfer("alice", "bob", 1_001)
        assert token.balance_of("alice") == 1_000
        assert token.balance_of("bob") == 0


class TestAllowance:

    def test_approve_sets_allowance(self, token):
        token.approve("alice", "vault", 500)
        assert token.allowance("alice", "vault") == 500

    def test_approve_overwrites(self, token):
        token.approve("alice", "vault", 500)
        token.approve("alice", "vault", 200)
        assert token.allowance("alice", "vault") == 200

    def test_transfer_from_spends_allowance(self, token):
        token.approve("alice", "vault", 500)
        token.transfer_from("vault", "alice", "vault", 400)
        assert token.balance_of("vault") == 400
        assert token.balance_of("alice") == 600
        assert token.allowance("alice", "vault") == 100

    def test_transfer_from_without_allowance_raises(self, token):
        with pytest.raises(InsufficientAllowance):
            token.transfer_from("vault", "alice", "vault", 1)
        assert token.balance_of("alice") == 1_000

    def test_transfer_from_beyond_balance_keeps_allowance(self, token):
        token.approve("alice", "vault", 5_000)
        with pytest.raises(InsufficientFunds):
            token.transfer_from("vault", "alice", "vault", 2_000)
        assert token.allowance("alice", "vault") == 5_000
        assert token.balance_of("vault") == 0
