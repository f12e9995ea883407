from __future__ import annotations

import copy

import pytest

from xenrank.ledger.token import InMemoryTokenLedger, MintBurnAuthority
from xenrank.runtime.apply.context import ApplyContext
from xenrank.runtime.errors import InvariantViolation


def test_authority_is_issued_once() -> None:
    t = InMemoryTokenLedger()
    a = t.issue_authority()
    assert isinstance(a, MintBurnAuthority)
    with pytest.raises(InvariantViolation):
        t.issue_authority()


def test_authority_cannot_be_copied() -> None:
    a = InMemoryTokenLedger().issue_authority()
    with pytest.raises(TypeError):
        copy.copy(a)
    with pytest.raises(TypeError):
        copy.deepcopy(a)


def test_foreign_authority_is_refused() -> None:
    t1 = InMemoryTokenLedger()
    t2 = InMemoryTokenLedger()
    t1.issue_authority()
    a2 = t2.issue_authority()
    t1.register("alice")
    with pytest.raises(InvariantViolation):
        t1.mint(a2, "alice", 1)


def test_mint_requires_registered_account() -> None:
    t = InMemoryTokenLedger()
    a = t.issue_authority()
    with pytest.raises(ValueError):
        t.mint(a, "ghost", 1)
    t.register("ghost")
    t.mint(a, "ghost", 5)
    assert t.balance_of("ghost") == 5
    assert t.total_minted_supply() == 5


def test_burn_from_checks_balance() -> None:
    t = InMemoryTokenLedger()
    a = t.issue_authority()
    t.credit("alice", 10)
    with pytest.raises(ValueError):
        t.burn_from(a, "alice", 11)
    t.burn_from(a, "alice", 4)
    assert t.balance_of("alice") == 6
    assert t.total_minted_supply() == 6


def test_untracked_supply_reports_none() -> None:
    t = InMemoryTokenLedger(track_supply=False)
    t.credit("alice", 10)
    assert t.total_minted_supply() is None


def test_deferred_context_queues_until_flushed() -> None:
    t = InMemoryTokenLedger()
    t.credit("bob", 10)
    ctx = ApplyContext(token=t, authority=t.issue_authority(), now_s=0, defer_token_effects=True)

    ctx.mint_to("alice", 5)
    ctx.mint_to("alice", 0)
    ctx.burn_from("bob", 3)
    assert t.balance_of("alice") == 0
    assert t.balance_of("bob") == 10

    assert ctx.flush_token_effects() == 2
    assert t.balance_of("alice") == 5
    assert t.balance_of("bob") == 7
    assert ctx.pending == []
